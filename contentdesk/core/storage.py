"""
Storage Utility
===============

Image processing with Pillow and local file storage for uploads.
"""

import io
import os
import random
import time

from flask import current_app
from PIL import Image, ImageOps, UnidentifiedImageError
from werkzeug.utils import secure_filename

from .errors import NotFoundError, ValidationError


def process_image(file_bytes, max_width=800, max_height=600, quality=80):
    """Decode, apply EXIF orientation, fit inside max_width x max_height
    without enlarging, and re-encode as WebP. Returns the WebP bytes."""
    try:
        img = Image.open(io.BytesIO(file_bytes))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Could not read image: {e}", field='image')

    img = ImageOps.exif_transpose(img)

    # thumbnail() only ever shrinks
    img.thumbnail((max_width, max_height), Image.LANCZOS)

    if img.mode not in ('RGB', 'RGBA'):
        has_alpha = 'A' in img.getbands() or 'transparency' in img.info
        img = img.convert('RGBA' if has_alpha else 'RGB')

    buf = io.BytesIO()
    img.save(buf, format='WEBP', quality=quality)
    return buf.getvalue()


def generate_filename(prefix='blog', extension='webp'):
    """<prefix>-<millis>-<random>.<extension>"""
    return f"{prefix}-{int(time.time() * 1000)}-{random.randint(0, 10 ** 9 - 1)}.{extension}"


def upload_folder():
    folder = current_app.config['UPLOAD_FOLDER']
    os.makedirs(folder, exist_ok=True)
    return folder


def save_file(file_bytes, filename):
    """Save to the upload folder, returning the stored filename"""
    filepath = os.path.join(upload_folder(), filename)
    with open(filepath, 'wb') as f:
        f.write(file_bytes)
    return filename


def resolve_stored_file(filename):
    """Path of a stored upload; only plain filenames are accepted"""
    if not filename or secure_filename(filename) != filename:
        raise ValidationError('Invalid filename', field='filename')
    return os.path.join(upload_folder(), filename)


def delete_file(filename):
    filepath = resolve_stored_file(filename)
    if not os.path.isfile(filepath):
        raise NotFoundError('Image not found')
    os.unlink(filepath)
    return True
