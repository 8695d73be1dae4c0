from flask import Blueprint, request
from flask_jwt_extended import jwt_required
from mint import get_core
from mint.decorators.auth import current_identity
from mint.services.credentials import public_user
from mint.utils.validation import parse_registration, parse_login

auth_bp = Blueprint('auth', __name__)


@auth_bp.post('/register')
def register():
    email, password, registration = parse_registration(request.get_json(silent=True) or {})
    user = get_core().auth.register(email, password, registration)
    return {'message': 'User registered successfully', 'user': user}, 201


@auth_bp.post('/login')
def login():
    email, password = parse_login(request.get_json(silent=True) or {})
    return get_core().auth.login(email, password)


@auth_bp.get('/profile')
@jwt_required()
def profile():
    core = get_core()
    identity = current_identity()
    user = core.credentials.get_user(identity.user_id)
    return {'user': public_user(user, roles=core.assignment.roles_for_user(user.id))}


@auth_bp.get('/permissions')
@jwt_required()
def permissions():
    return {'permissions': get_core().authorizer.effective_permissions(current_identity())}
