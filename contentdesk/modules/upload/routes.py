"""
Upload Routes
=============

Cover image upload: every accepted image is normalized to WebP and stored
in UPLOAD_FOLDER. Responses carry the stored filename only.
"""

from flask import current_app, request

from . import upload_bp
from ..auth import auth_required
from ...core.errors import ValidationError
from ...core.logging_service import db_log
from ...core.resource import handle_errors, success
from ...core.storage import delete_file, generate_filename, process_image, save_file


@upload_bp.route('/image', methods=['POST'])
@auth_required()
@handle_errors('Failed to upload and convert image')
def upload_image():
    file = request.files.get('image')
    if file is None or not file.filename:
        raise ValidationError('No file uploaded', field='image')

    if not (file.mimetype or '').startswith('image/'):
        raise ValidationError('Only image files are allowed', field='image')

    file_bytes = file.read()
    max_bytes = current_app.config.get('UPLOAD_MAX_BYTES', 10 * 1024 * 1024)
    if len(file_bytes) > max_bytes:
        raise ValidationError(
            f"Image exceeds the {max_bytes // (1024 * 1024)}MB upload limit", field='image'
        )

    webp_bytes = process_image(
        file_bytes,
        max_width=current_app.config.get('IMAGE_MAX_WIDTH', 800),
        max_height=current_app.config.get('IMAGE_MAX_HEIGHT', 600),
        quality=current_app.config.get('IMAGE_QUALITY', 80),
    )
    filename = save_file(webp_bytes, generate_filename('blog'))

    db_log('info', 'upload', f"Image uploaded: {filename}", {
        'original_name': file.filename,
        'original_size': len(file_bytes),
        'size': len(webp_bytes),
    })
    return success({
        'filename': filename,
        'original_name': file.filename,
        'size': len(webp_bytes),
        'mimetype': 'image/webp',
    }, 'Image uploaded and converted to WebP successfully')


@upload_bp.route('/image/<filename>', methods=['DELETE'])
@auth_required()
@handle_errors('Failed to delete image')
def delete_image(filename):
    delete_file(filename)
    db_log('info', 'upload', f"Image deleted: {filename}")
    return success(message='Image deleted successfully')
