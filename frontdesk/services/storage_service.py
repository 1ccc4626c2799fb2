"""
Object storage for uploaded pictures and generated PDFs.

Buckets are directories under STORAGE_ROOT; objects are served back
through the ``/storage/<bucket>/<path>`` route, so the public URL of an
object is ``<STORAGE_PUBLIC_URL>/<bucket>/<path>``.
"""
import io
import logging
import os
import secrets
import time
from abc import ABC, abstractmethod
from urllib.parse import unquote, urlparse

from flask import current_app
from PIL import Image, UnidentifiedImageError

from frontdesk.services.errors import StorageError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'jpg', 'jpeg', 'png', 'webp', 'gif', 'heic'}


class ObjectStorage(ABC):

    @abstractmethod
    def upload(self, bucket, path, data, content_type=None):
        """Store ``data`` (bytes) at ``bucket/path`` and return its public URL."""

    @abstractmethod
    def remove(self, bucket, paths):
        """Delete objects; True when every path is gone afterwards."""

    @abstractmethod
    def list(self, bucket, prefix=''):
        ...

    @abstractmethod
    def path_from_public_url(self, bucket, url):
        ...


class LocalObjectStorage(ObjectStorage):

    def __init__(self, root, public_url, buckets=None):
        self.root = os.path.abspath(root)
        self.public_url = public_url.rstrip('/')
        # None accepts any plain directory name
        self.buckets = frozenset(buckets) if buckets is not None else None

    def _bucket_dir(self, bucket):
        if self.buckets is not None and bucket not in self.buckets:
            raise StorageError(f"Unknown bucket: {bucket}")
        base = os.path.abspath(os.path.join(self.root, bucket or ''))
        if os.path.dirname(base) != self.root or bucket in ('.', '..'):
            raise StorageError(f"Invalid bucket: {bucket}")
        return base

    def _resolve(self, bucket, path=''):
        base = self._bucket_dir(bucket)
        full = os.path.abspath(os.path.join(base, path))
        if full != base and not full.startswith(base + os.sep):
            raise StorageError(f"Path escapes bucket: {path}")
        return full

    def public_url_for(self, bucket, path):
        return f"{self.public_url}/{bucket}/{path}"

    def upload(self, bucket, path, data, content_type=None):
        target = self._resolve(bucket, path)
        try:
            os.makedirs(os.path.dirname(target), exist_ok=True)
            with open(target, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error("Upload to %s/%s failed: %s", bucket, path, e)
            raise StorageError(f"Upload failed: {e}") from e
        logger.info("Stored %s/%s (%d bytes)", bucket, path, len(data))
        return self.public_url_for(bucket, path)

    def remove(self, bucket, paths):
        ok = True
        for path in paths:
            target = self._resolve(bucket, path)
            try:
                os.remove(target)
            except FileNotFoundError:
                logger.warning("Object %s/%s already gone", bucket, path)
            except OSError as e:
                logger.warning("Failed to delete %s/%s: %s", bucket, path, e)
                ok = False
            if os.path.exists(target):
                ok = False
        return ok

    def list(self, bucket, prefix=''):
        folder = self._resolve(bucket, prefix)
        if not os.path.isdir(folder):
            return []
        entries = []
        for name in sorted(os.listdir(folder)):
            full = os.path.join(folder, name)
            entries.append({
                'name': name,
                'size': os.path.getsize(full) if os.path.isfile(full) else None,
                'is_dir': os.path.isdir(full),
            })
        return entries

    def open(self, bucket, path):
        return self._resolve(bucket, path)

    def path_from_public_url(self, bucket, url):
        """Object path inside ``bucket`` for a URL produced by upload(), or None."""
        if not url:
            return None
        parts = [p for p in unquote(urlparse(url).path).split('/') if p]
        if bucket not in parts:
            return None
        path = '/'.join(parts[parts.index(bucket) + 1:])
        return path or None


def unique_filename(original_name):
    """``<epoch-ms>-<random>.<ext>`` keeping the original extension."""
    ext = original_name.rsplit('.', 1)[-1].lower() if '.' in (original_name or '') else 'bin'
    return f"{int(time.time() * 1000)}-{secrets.token_hex(5)}.{ext}"


def verify_image(data, filename=''):
    """Raise StorageError unless ``data`` decodes as an image."""
    ext = filename.rsplit('.', 1)[-1].lower() if '.' in filename else ''
    if ext and ext not in IMAGE_EXTENSIONS:
        raise StorageError(f"Unsupported image type: .{ext}")
    if ext == 'heic':
        return
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        raise StorageError(f"Invalid image file: {filename or 'upload'}") from e


def upload_image(storage, bucket, folder, data, filename, content_type=None):
    """Verify and upload a picture under ``folder`` with a unique name; return its public URL."""
    verify_image(data, filename)
    path = f"{folder}/{unique_filename(filename)}"
    return storage.upload(bucket, path, data, content_type)


def get_storage():
    """Storage bound to the current app's configuration."""
    storage = current_app.extensions.get('frontdesk_storage')
    if storage is None:
        storage = LocalObjectStorage(
            current_app.config['STORAGE_ROOT'],
            current_app.config['STORAGE_PUBLIC_URL'],
            buckets=(current_app.config['SURGICAL_RECALL_BUCKET'],
                     current_app.config['AGREEMENT_PDF_BUCKET']),
        )
        current_app.extensions['frontdesk_storage'] = storage
    return storage
