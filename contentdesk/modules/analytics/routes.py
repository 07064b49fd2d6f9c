from flask import request

from . import analytics_bp
from .analytics import Analytics
from ..auth import auth_required
from ...core.resource import get_database, handle_errors, success


@analytics_bp.route('/overview', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch analytics overview')
def overview():
    """Newsletter and message figures over a time range (7d, 30d, 90d, 1y)"""
    time_range = request.args.get('time_range', '30d')
    return success(Analytics(get_database()).overview(time_range))


@analytics_bp.route('/activity', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch activity analytics')
def activity():
    """Daily signups and submissions with the top subscriber sources"""
    time_range = request.args.get('time_range', '30d')
    return success(Analytics(get_database()).activity(time_range))
