from .artifact_store import (
    ArtifactStore,
    LocalArtifactStore,
    CloudinaryArtifactStore,
    create_artifact_store,
    get_artifact_store,
)

from .submission_service import (
    create_submission,
    list_patient_submissions,
    list_all_submissions,
    get_patient_submission,
    get_submission,
    save_annotated_image,
    annotate_submission,
)

from .report_service import generate_report

__all__ = [
    # Artifact store
    "ArtifactStore",
    "LocalArtifactStore",
    "CloudinaryArtifactStore",
    "create_artifact_store",
    "get_artifact_store",
    # Submission lifecycle
    "create_submission",
    "list_patient_submissions",
    "list_all_submissions",
    "get_patient_submission",
    "get_submission",
    "save_annotated_image",
    "annotate_submission",
    # Reports
    "generate_report",
]
