import os
import shutil
from datetime import datetime, timezone

from flask import current_app, jsonify

from . import health_bp
from ...core.resource import get_database


def _get_disk_usage(path):
    """Get disk usage for the partition holding the database."""
    try:
        usage = shutil.disk_usage(path)
        return {
            'total_gb': round(usage.total / (1024 ** 3), 1),
            'free_gb': round(usage.free / (1024 ** 3), 1),
            'percent': round((usage.used / usage.total) * 100, 1),
        }
    except OSError as e:
        return {'total_gb': 0, 'free_gb': 0, 'percent': 0, 'error': str(e)}


def _check_database():
    try:
        get_database().scalar("SELECT 1")
        return {'ok': True}
    except Exception as e:
        current_app.logger.warning(f"health: database check failed: {e}")
        return {'ok': False, 'error': str(e)}


def _build_health_response():
    database = _check_database()
    disk = _get_disk_usage(os.path.dirname(get_database().path) or '.')

    status = 'ok'
    if not database['ok'] or disk.get('percent', 0) >= 90:
        status = 'critical'
    elif disk.get('percent', 0) >= 80:
        status = 'warning'

    return {
        'status': status,
        'timestamp': datetime.now(timezone.utc).isoformat(),
        'checks': {'database': database, 'disk': disk},
    }, status


@health_bp.route('', methods=['GET'])
def health_check():
    data, status = _build_health_response()
    code = 503 if status == 'critical' else 200
    return jsonify(data), code
