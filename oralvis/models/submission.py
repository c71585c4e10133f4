"""
Submission Model
One patient's uploaded image plus its annotation and report artifacts
"""
from oralvis.extensions import db
from .base import TimestampMixin

STATUS_UPLOADED = 'uploaded'
STATUS_ANNOTATED = 'annotated'
STATUS_REPORTED = 'reported'

# Ordered: a submission only ever moves to a later entry
STATUSES = (STATUS_UPLOADED, STATUS_ANNOTATED, STATUS_REPORTED)


class Submission(db.Model, TimestampMixin):
    __tablename__ = 'submissions'

    id = db.Column(db.Integer, primary_key=True)
    patient_user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)

    # Identity snapshot taken at upload time (not a live join)
    name = db.Column(db.String(120), nullable=False)
    patient_id = db.Column(db.String(50), nullable=False)
    email = db.Column(db.String(120), nullable=False)
    note = db.Column(db.Text)

    image_url = db.Column(db.String(500), nullable=False)
    annotation_json = db.Column(db.JSON)
    annotated_image_url = db.Column(db.String(500))
    report_url = db.Column(db.String(500))

    status = db.Column(db.String(20), nullable=False, default=STATUS_UPLOADED, index=True)

    patient = db.relationship('User', back_populates='submissions', lazy=True)

    def to_dict(self, include_patient=False):
        """Serialize with the field names the web client expects"""
        data = {
            'id': self.id,
            'patient': self.patient_user_id,
            'name': self.name,
            'patientId': self.patient_id,
            'email': self.email,
            'note': self.note,
            'imageUrl': self.image_url,
            'annotationJson': self.annotation_json,
            'annotatedImageUrl': self.annotated_image_url,
            'reportUrl': self.report_url,
            'status': self.status,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
            'updatedAt': self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_patient and self.patient is not None:
            data['patient'] = {
                'id': self.patient.id,
                'name': self.patient.name,
                'email': self.patient.email,
                'patientId': self.patient.patient_id,
            }
        return data

    def __repr__(self):
        return f"<Submission {self.id} ({self.status})>"
