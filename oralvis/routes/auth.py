from flask import Blueprint, request, jsonify
from flask_jwt_extended import create_access_token, set_access_cookies, unset_jwt_cookies
from sqlalchemy.exc import IntegrityError

from oralvis.errors import Unauthenticated, ValidationError
from oralvis.extensions import db
from oralvis.models import User
from oralvis.models.user import ROLE_PATIENT
from oralvis.schemas import LoginRequest, RegisterRequest, validate_payload
from oralvis.utils.decorators import auth_required, get_current_user
import logging

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/api/auth')


def _token_response(user, message, status_code):
    """JSON body with the token, plus the same token as an httpOnly cookie"""
    # Identity must be a string for the JWT "sub" claim
    access_token = create_access_token(identity=str(user.id), additional_claims={'role': user.role})
    response = jsonify({
        'message': message,
        'user': user.to_dict(),
        'token': access_token,
    })
    set_access_cookies(response, access_token)
    return response, status_code


@auth_bp.route('/register', methods=['POST'])
def register():
    """Patient self-registration. Admin accounts are created with init_admin.py."""
    data = validate_payload(RegisterRequest, request.get_json(silent=True))

    if User.query.filter_by(email=data.email).first():
        raise ValidationError('Email already registered', errors=[{'field': 'email', 'message': 'Email already registered'}])

    user = User(
        name=data.name,
        patient_id=data.patient_id,
        email=data.email,
        role=ROLE_PATIENT,
    )
    user.set_password(data.password)
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        raise ValidationError('Email already registered', errors=[{'field': 'email', 'message': 'Email already registered'}]) from e

    logger.info(f"Registered patient {user.id}")
    return _token_response(user, 'User registered successfully', 201)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Login endpoint - authenticates a user and returns a JWT"""
    data = validate_payload(LoginRequest, request.get_json(silent=True), message='Email and password required')

    user = User.query.filter_by(email=data.email).first()
    if not user or not user.check_password(data.password):
        raise Unauthenticated('Invalid email or password')

    return _token_response(user, 'Login successful', 200)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    """Clear the token cookie. Header tokens are simply discarded by the client."""
    response = jsonify({'message': 'Logged out successfully'})
    unset_jwt_cookies(response)
    return response, 200


@auth_bp.route('/me', methods=['GET'])
@auth_required
def me():
    """Current user's profile"""
    return jsonify({'message': 'OK', 'user': get_current_user().to_dict()}), 200
