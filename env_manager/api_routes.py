import logging
from flask import jsonify, request, Blueprint, current_app
from env_manager.auth import login_required
from env_manager.errors import EnvVarError, InfrastructureError

api_bp = Blueprint('api', __name__)
logger = logging.getLogger(__name__)


def init_api(app, env_var_manager):
    """Attach the record store; None means the database failed to open."""
    app.extensions['env_var_manager'] = env_var_manager


def get_env_var_manager():
    manager = current_app.extensions.get('env_var_manager')
    if manager is None:
        raise InfrastructureError("Database is not available")
    return manager


def _request_payload():
    data = request.get_json(silent=True)
    if data is None:
        data = request.form.to_dict()
    return data if isinstance(data, dict) else {}


def _record_response(record, message):
    return jsonify({
        "id": record['id'],
        "key": record['key'],
        "value": record['value'],
        "remark": record['remark'],
        "message": message,
    })


@api_bp.errorhandler(EnvVarError)
def handle_env_var_error(error):
    if isinstance(error, InfrastructureError):
        logger.error(f"{request.method} {request.path} failed: {error.message}")
        return jsonify({"error": "Internal server error"}), error.status_code
    return jsonify({"error": error.message}), error.status_code


@api_bp.route('/api/env-vars', methods=['GET'])
@login_required
def list_env_vars():
    """
    Get all environment variables
    ---
    tags:
      - Environment Variables
    security:
      - SessionAuth: []
    responses:
      200:
        description: All environment variables, newest (highest id) first
        schema:
          type: array
          items:
            type: object
            properties:
              id:
                type: integer
              key:
                type: string
              value:
                type: string
              remark:
                type: string
              created_at:
                type: string
                format: date-time
              updated_at:
                type: string
                format: date-time
      302:
        description: Redirect to login if not authenticated
      500:
        description: Database error
    """
    return jsonify(get_env_var_manager().list_env_vars())


@api_bp.route('/api/env-vars', methods=['POST'])
@login_required
def create_env_var():
    """
    Create a new environment variable
    ---
    tags:
      - Environment Variables
    security:
      - SessionAuth: []
    parameters:
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - key
            - value
          properties:
            key:
              type: string
              description: Variable name
            value:
              type: string
              description: Variable value
            remark:
              type: string
              description: Optional remark
    responses:
      200:
        description: Environment variable created
        schema:
          type: object
          properties:
            id:
              type: integer
            key:
              type: string
            value:
              type: string
            remark:
              type: string
            message:
              type: string
      400:
        description: Key or value is empty
      302:
        description: Redirect to login if not authenticated
      500:
        description: Database error
    """
    data = _request_payload()
    record = get_env_var_manager().create_env_var(data.get('key'), data.get('value'), data.get('remark'))
    logger.info(f"Created env var {record['id']} ({record['key']})")
    return _record_response(record, "Created successfully")


@api_bp.route('/api/env-vars/<int:env_var_id>', methods=['PUT'])
@login_required
def update_env_var(env_var_id):
    """
    Update an existing environment variable
    ---
    tags:
      - Environment Variables
    security:
      - SessionAuth: []
    parameters:
      - name: env_var_id
        in: path
        type: integer
        required: true
        description: ID of the environment variable to update
      - name: body
        in: body
        required: true
        schema:
          type: object
          required:
            - key
            - value
          properties:
            key:
              type: string
            value:
              type: string
            remark:
              type: string
    responses:
      200:
        description: Environment variable updated
        schema:
          type: object
          properties:
            id:
              type: integer
            key:
              type: string
            value:
              type: string
            remark:
              type: string
            message:
              type: string
      400:
        description: Key or value is empty
      404:
        description: Environment variable not found
      302:
        description: Redirect to login if not authenticated
      500:
        description: Database error
    """
    data = _request_payload()
    record = get_env_var_manager().update_env_var(env_var_id, data.get('key'), data.get('value'), data.get('remark'))
    logger.info(f"Updated env var {env_var_id}")
    return _record_response(record, "Updated successfully")


@api_bp.route('/api/env-vars/<int:env_var_id>', methods=['DELETE'])
@login_required
def delete_env_var(env_var_id):
    """
    Delete an environment variable
    ---
    tags:
      - Environment Variables
    security:
      - SessionAuth: []
    parameters:
      - name: env_var_id
        in: path
        type: integer
        required: true
        description: ID of the environment variable to delete
    responses:
      200:
        description: Environment variable deleted
        schema:
          type: object
          properties:
            id:
              type: integer
            message:
              type: string
      404:
        description: Environment variable not found
      302:
        description: Redirect to login if not authenticated
      500:
        description: Database error
    """
    deleted_id = get_env_var_manager().delete_env_var(env_var_id)
    logger.info(f"Deleted env var {deleted_id}")
    return jsonify({"id": deleted_id, "message": "Deleted successfully"})
