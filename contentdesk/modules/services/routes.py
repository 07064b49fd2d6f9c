from flask import request

from . import services_bp
from .models import ServiceRepository, prepare_service
from ..auth import auth_required
from ...core.logging_service import db_log
from ...core.resource import (
    get_database, handle_errors, parse_pagination, request_data, success,
)


@services_bp.route('', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch services')
def get_services():
    services = ServiceRepository(get_database())
    page, limit = parse_pagination(request.args)
    items, pagination = services.list(
        services.filters_from_args(request.args), request.args.get('search'), page, limit
    )
    return success({'items': items, 'pagination': pagination})


@services_bp.route('/<int:service_id>', methods=['GET'])
@auth_required()
@handle_errors('Failed to fetch service')
def get_service(service_id):
    return success({'service': ServiceRepository(get_database()).get_or_404(service_id)})


@services_bp.route('', methods=['POST'])
@auth_required()
@handle_errors('Failed to create service')
def create_service():
    services = ServiceRepository(get_database())
    service = services.get(services.insert(prepare_service(request_data())))
    db_log('info', 'services', f"Service created: {service['name']}")
    return success({'service': service}, 'Service created successfully', 201)


@services_bp.route('/<int:service_id>', methods=['PUT'])
@auth_required()
@handle_errors('Failed to update service')
def update_service(service_id):
    services = ServiceRepository(get_database())
    existing = services.get_or_404(service_id)
    changes = prepare_service(request_data(), existing)
    if changes:
        services.update(service_id, changes)
    return success({'service': services.get(service_id)}, 'Service updated successfully')


@services_bp.route('/<int:service_id>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete service')
def delete_service(service_id):
    services = ServiceRepository(get_database())
    services.get_or_404(service_id)
    services.delete(service_id)
    db_log('info', 'services', 'Service deleted', {'id': service_id})
    return success(message='Service deleted successfully')
