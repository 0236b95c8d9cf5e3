"""
Patent collection loading and caching

The ranking core expects the whole collection in memory. This module owns
acquisition: reading patents.json from local disk or Cloud Storage and keeping
the parsed collection in an explicit cache.

Expected payload (JSON array):
[
    {"app_no": "10-2020-0001234", "title": "...", "abstract": "...", "text": "..."},
    ...
]

Cache policy:
- Load on first get()
- Reload when the source fingerprint changes (file hash / blob generation)
- invalidate() forces a reload on the next get()
- Once loaded, source failures keep the cached collection in service
"""

import hashlib
import json
import logging
import threading
from pathlib import Path
from typing import List, Optional, Tuple, Union

from google.cloud import storage

from .models import Document

logger = logging.getLogger(__name__)


class CollectionLoadError(Exception):
    """Patent collection could not be read or parsed"""
    pass


def parse_documents(payload: Union[bytes, str]) -> List[Document]:
    """
    Parse a patents.json payload into Documents.
    
    Args:
        payload: JSON bytes or text (top level must be an array)
    
    Returns:
        Documents in payload order (non-object entries are skipped)
    
    Raises:
        CollectionLoadError: Invalid JSON or top level is not an array
    """
    try:
        records = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise CollectionLoadError(f"Invalid patent collection JSON: {e}")
    
    if not isinstance(records, list):
        raise CollectionLoadError(
            f"Patent collection must be a JSON array, got {type(records).__name__}"
        )
    
    documents = []
    skipped = 0
    for record in records:
        if not isinstance(record, dict):
            skipped += 1
            continue
        documents.append(Document.from_record(record))
    
    if skipped:
        logger.warning(f"Skipped {skipped} non-object entries in patent collection")
    
    return documents


class LocalJSONSource:
    """
    patents.json on local disk
    
    Fingerprint is the SHA256 of file content. The file is only re-hashed when
    its size or mtime changes.
    """
    
    HASH_CHUNK_SIZE = 1024 * 1024
    
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._stat_key: Optional[Tuple[int, int]] = None
        self._digest: Optional[str] = None
    
    def __repr__(self):
        return f"LocalJSONSource(path='{self.path}')"
    
    def read(self) -> bytes:
        try:
            return self.path.read_bytes()
        except OSError as e:
            raise CollectionLoadError(f"Cannot read patent collection {self.path}: {e}")
    
    def fingerprint(self) -> str:
        """SHA256 of file content (cached per size + mtime)"""
        try:
            stat = self.path.stat()
            stat_key = (stat.st_size, stat.st_mtime_ns)
            if stat_key != self._stat_key or self._digest is None:
                self._digest = self._hash_file()
                self._stat_key = stat_key
            return self._digest
        except OSError as e:
            raise CollectionLoadError(f"Cannot read patent collection {self.path}: {e}")
    
    def _hash_file(self) -> str:
        digest = hashlib.sha256()
        with open(self.path, "rb") as f:  # Binary: hash exact bytes
            for chunk in iter(lambda: f.read(self.HASH_CHUNK_SIZE), b""):
                digest.update(chunk)
        return digest.hexdigest()


class GCSJSONSource:
    """patents.json stored as a Cloud Storage blob"""
    
    def __init__(self, bucket_name: str, blob_name: str = "patents.json", client: Optional[storage.Client] = None):
        """
        Initialize GCS source
        
        Args:
            bucket_name: GCS bucket name
            blob_name: Object path inside the bucket
            client: Storage client (default: storage.Client() with ambient credentials)
        """
        self.client = client or storage.Client()
        self.bucket = self.client.bucket(bucket_name)
        self.bucket_name = bucket_name
        self.blob_name = blob_name
    
    def __repr__(self):
        return f"GCSJSONSource(uri='gs://{self.bucket_name}/{self.blob_name}')"
    
    def read(self) -> bytes:
        blob = self.bucket.blob(self.blob_name)
        try:
            return blob.download_as_bytes()
        except Exception as e:
            raise CollectionLoadError(
                f"Failed to download gs://{self.bucket_name}/{self.blob_name}: {e}"
            )
    
    def fingerprint(self) -> str:
        """Blob generation (changes on every overwrite)"""
        try:
            blob = self.bucket.get_blob(self.blob_name)
        except Exception as e:
            raise CollectionLoadError(
                f"Failed to stat gs://{self.bucket_name}/{self.blob_name}: {e}"
            )
        if blob is None:
            raise CollectionLoadError(f"Patent collection not found: gs://{self.bucket_name}/{self.blob_name}")
        return str(blob.generation)


class CollectionCache:
    """
    In-memory cache of the parsed patent collection.
    
    Thread-safe: concurrent get() calls load the source at most once.
    """
    
    def __init__(self, source):
        """
        Args:
            source: Object with read() -> bytes and fingerprint() -> str
                (LocalJSONSource, GCSJSONSource)
        """
        self.source = source
        self._documents: Optional[List[Document]] = None
        self._fingerprint: Optional[str] = None
        self._lock = threading.Lock()
    
    @property
    def loaded(self) -> bool:
        return self._documents is not None
    
    @property
    def size(self) -> int:
        return len(self._documents) if self._documents is not None else 0
    
    def get(self) -> List[Document]:
        """
        Return the collection, loading or reloading it if needed.
        
        Once loaded, a failing source (fingerprint or reload) keeps the cached
        collection in service; the error is logged and retried on the next call.
        
        Raises:
            CollectionLoadError: Source missing, unreadable or malformed and
                nothing is cached yet
        """
        with self._lock:
            try:
                fingerprint = self.source.fingerprint()
                if self._documents is None or fingerprint != self._fingerprint:
                    self._load(fingerprint)
            except CollectionLoadError as e:
                if self._documents is None:
                    raise
                logger.warning(f"Serving cached patent collection ({len(self._documents)} patents): {e}")
            return self._documents
    
    def invalidate(self):
        """Drop cached collection; next get() reloads from source"""
        with self._lock:
            self._documents = None
            self._fingerprint = None
        logger.info(f"Patent collection cache invalidated ({self.source})")
    
    def _load(self, fingerprint: str):
        reason = "initial load" if self._documents is None else "source changed"
        documents = parse_documents(self.source.read())
        self._documents = documents
        self._fingerprint = fingerprint
        logger.info(f"✓ Loaded {len(documents)} patents from {self.source} ({reason})")
