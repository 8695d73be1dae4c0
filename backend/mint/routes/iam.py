from flask import Blueprint, request, abort
from mint import get_core
from mint.config.pagination import normalize_pagination, paginate
from mint.decorators.auth import require_permission, current_identity
from mint.services.credentials import public_user
from mint.utils.validation import parse_status

iam_bp = Blueprint('iam', __name__)


def _page_args():
    try:
        return normalize_pagination(request.args.get('limit'), request.args.get('offset'))
    except ValueError as e:
        abort(400, description=str(e))


def _permission_json(p):
    return {'id': p.id, 'name': p.name, 'resource': p.resource, 'action': p.action, 'description': p.description}


@iam_bp.get('/permissions')
@require_permission('user', 'read')
def list_permissions():
    limit, offset = _page_args()
    rows = get_core().catalog.list_permissions(
        resource=request.args.get('resource'),
        action=request.args.get('action'),
    )
    return paginate([_permission_json(p) for p in rows], limit, offset)


@iam_bp.get('/roles')
@require_permission('user', 'read')
def list_roles():
    limit, offset = _page_args()
    registry = get_core().registry
    rows = [
        {
            'id': r.id,
            'name': r.name,
            'description': r.description,
            'is_system': r.is_system,
            'permissions': [p.name for p in registry.resolve_permissions(r.id)],
        }
        for r in registry.list_roles()
    ]
    return paginate(rows, limit, offset)


@iam_bp.put('/users/<int:user_id>/roles/<int:role_id>')
@require_permission('user', 'update')
def assign_user_role(user_id: int, role_id: int):
    created = get_core().assignment.assign_role(user_id, role_id, actor_user_id=current_identity().user_id)
    return {'user_id': user_id, 'role_id': role_id, 'created': created}, (201 if created else 200)


@iam_bp.delete('/users/<int:user_id>/roles/<int:role_id>')
@require_permission('user', 'update')
def revoke_user_role(user_id: int, role_id: int):
    get_core().assignment.revoke_role(user_id, role_id, actor_user_id=current_identity().user_id)
    return {'status': 'deleted'}


@iam_bp.put('/users/<int:user_id>/permissions/<int:permission_id>')
@require_permission('user', 'update')
def grant_user_permission(user_id: int, permission_id: int):
    created = get_core().assignment.grant_user_permission(
        user_id, permission_id, actor_user_id=current_identity().user_id
    )
    return {'user_id': user_id, 'permission_id': permission_id, 'created': created}, (201 if created else 200)


@iam_bp.delete('/users/<int:user_id>/permissions/<int:permission_id>')
@require_permission('user', 'update')
def revoke_user_permission(user_id: int, permission_id: int):
    get_core().assignment.revoke_user_permission(user_id, permission_id, actor_user_id=current_identity().user_id)
    return {'status': 'deleted'}


@iam_bp.patch('/users/<int:user_id>/status')
@require_permission('user', 'update')
def set_user_status(user_id: int):
    status = parse_status(request.get_json(silent=True) or {})
    user = get_core().credentials.set_status(user_id, status, actor_user_id=current_identity().user_id)
    return {'user': public_user(user)}
