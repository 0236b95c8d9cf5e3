"""
Unit tests for patent collection loading and caching.

GCS access is mocked - no network calls.
"""

import hashlib
import json
from unittest.mock import Mock, patch

import pytest
from google.api_core.exceptions import ServiceUnavailable

from src.collection import (
    CollectionCache,
    CollectionLoadError,
    GCSJSONSource,
    LocalJSONSource,
    parse_documents,
)
from src.models import Document


@pytest.fixture
def patent_records():
    return [
        {"app_no": "10-2021-0001001", "title": "배터리 냉각", "abstract": "냉각 플레이트", "text": "본문"},
        {"app_no": "10-2021-0001002", "title": "Lithium anode", "abstract": None},
    ]


@pytest.fixture
def patents_file(tmp_path, patent_records):
    path = tmp_path / "patents.json"
    path.write_text(json.dumps(patent_records, ensure_ascii=False), encoding="utf-8")
    return path


class TestParseDocuments:
    """Test payload parsing"""
    
    def test_parse_records(self, patent_records):
        documents = parse_documents(json.dumps(patent_records, ensure_ascii=False).encode("utf-8"))
        assert documents == [
            Document("10-2021-0001001", "배터리 냉각", "냉각 플레이트", "본문"),
            Document("10-2021-0001002", "Lithium anode", "", ""),
        ]
    
    def test_invalid_json(self):
        with pytest.raises(CollectionLoadError, match="Invalid"):
            parse_documents(b"{not json")
    
    def test_top_level_must_be_array(self):
        with pytest.raises(CollectionLoadError, match="array"):
            parse_documents('{"app_no": "1"}')
    
    def test_non_object_entries_skipped(self, caplog):
        documents = parse_documents('[{"app_no": "1"}, "junk", 42]')
        assert [d.identifier for d in documents] == ["1"]
        assert "Skipped 2" in caplog.text
    
    def test_empty_array(self):
        assert parse_documents("[]") == []


class TestLocalJSONSource:
    """Test local file source"""
    
    def test_read_and_fingerprint(self, patents_file):
        source = LocalJSONSource(patents_file)
        assert source.read() == patents_file.read_bytes()
        assert source.fingerprint() == hashlib.sha256(patents_file.read_bytes()).hexdigest()
    
    def test_fingerprint_hashes_in_chunks(self, patents_file):
        """Test chunked hashing gives the whole-file digest"""
        source = LocalJSONSource(patents_file)
        source.HASH_CHUNK_SIZE = 7
        assert source.fingerprint() == hashlib.sha256(patents_file.read_bytes()).hexdigest()
    
    def test_unchanged_file_not_rehashed(self, patents_file):
        """Test that size + mtime gate re-hashing"""
        source = LocalJSONSource(patents_file)
        
        with patch.object(source, "_hash_file", wraps=source._hash_file) as hash_file:
            first = source.fingerprint()
            second = source.fingerprint()
            assert first == second
            assert hash_file.call_count == 1
            
            patents_file.write_text('[{"app_no": "3"}]', encoding="utf-8")
            
            assert source.fingerprint() != first
            assert hash_file.call_count == 2
    
    def test_missing_file(self, tmp_path):
        source = LocalJSONSource(tmp_path / "missing.json")
        with pytest.raises(CollectionLoadError):
            source.read()
        with pytest.raises(CollectionLoadError):
            source.fingerprint()


class TestGCSJSONSource:
    """Test Cloud Storage source with mocked client"""
    
    @pytest.fixture
    def mock_client(self):
        client = Mock()
        bucket = Mock()
        client.bucket.return_value = bucket
        return client
    
    def test_read(self, mock_client):
        bucket = mock_client.bucket.return_value
        bucket.blob.return_value.download_as_bytes.return_value = b"[]"
        
        source = GCSJSONSource("patents-bucket", "data/patents.json", client=mock_client)
        
        assert source.read() == b"[]"
        mock_client.bucket.assert_called_once_with("patents-bucket")
        bucket.blob.assert_called_once_with("data/patents.json")
    
    def test_read_failure(self, mock_client):
        bucket = mock_client.bucket.return_value
        bucket.blob.return_value.download_as_bytes.side_effect = RuntimeError("403 Forbidden")
        
        source = GCSJSONSource("patents-bucket", client=mock_client)
        with pytest.raises(CollectionLoadError, match="403"):
            source.read()
    
    def test_fingerprint_is_generation(self, mock_client):
        mock_client.bucket.return_value.get_blob.return_value = Mock(generation=1700000000123)
        source = GCSJSONSource("patents-bucket", client=mock_client)
        assert source.fingerprint() == "1700000000123"
    
    def test_missing_blob(self, mock_client):
        mock_client.bucket.return_value.get_blob.return_value = None
        source = GCSJSONSource("patents-bucket", client=mock_client)
        with pytest.raises(CollectionLoadError, match="not found"):
            source.fingerprint()
    
    def test_metadata_failure(self, mock_client):
        """Test GCS API errors while fetching blob metadata become CollectionLoadError"""
        mock_client.bucket.return_value.get_blob.side_effect = ServiceUnavailable("gcs down")
        source = GCSJSONSource("patents-bucket", client=mock_client)
        with pytest.raises(CollectionLoadError, match="gcs down"):
            source.fingerprint()


class TestCollectionCache:
    """Test explicit cache with fingerprint invalidation"""
    
    @pytest.fixture
    def source(self):
        source = Mock()
        source.fingerprint.return_value = "v1"
        source.read.return_value = b'[{"app_no": "1", "title": "Battery"}]'
        return source
    
    def test_lazy_load(self, source):
        cache = CollectionCache(source)
        assert not cache.loaded
        assert cache.size == 0
        source.read.assert_not_called()
        
        documents = cache.get()
        
        assert cache.loaded
        assert cache.size == 1
        assert documents[0].title == "Battery"
    
    def test_loaded_once(self, source):
        cache = CollectionCache(source)
        first = cache.get()
        second = cache.get()
        
        assert first is second
        assert source.read.call_count == 1
    
    def test_reload_on_fingerprint_change(self, source):
        cache = CollectionCache(source)
        cache.get()
        
        source.fingerprint.return_value = "v2"
        source.read.return_value = b'[{"app_no": "1"}, {"app_no": "2"}]'
        
        assert len(cache.get()) == 2
        assert source.read.call_count == 2
    
    def test_invalidate(self, source):
        cache = CollectionCache(source)
        cache.get()
        cache.invalidate()
        
        assert not cache.loaded
        cache.get()
        assert source.read.call_count == 2
    
    def test_load_error_propagates(self, source):
        source.read.return_value = b"not json"
        cache = CollectionCache(source)
        
        with pytest.raises(CollectionLoadError):
            cache.get()
        assert not cache.loaded
    
    def test_fingerprint_failure_serves_cached(self, source, caplog):
        """Test a loaded collection stays in service when the source cannot be checked"""
        cache = CollectionCache(source)
        cache.get()
        
        source.fingerprint.side_effect = CollectionLoadError("transient")
        
        documents = cache.get()
        
        assert [d.identifier for d in documents] == ["1"]
        assert source.read.call_count == 1
        assert "transient" in caplog.text
    
    def test_reload_failure_serves_cached(self, source):
        """Test a changed but unreadable source keeps the previous collection"""
        cache = CollectionCache(source)
        cache.get()
        
        source.fingerprint.return_value = "v2"
        source.read.return_value = b"{broken"
        
        assert [d.identifier for d in cache.get()] == ["1"]
        
        # Retried once the source is fixed
        source.read.return_value = b'[{"app_no": "2"}]'
        assert [d.identifier for d in cache.get()] == ["2"]
    
    def test_fingerprint_failure_without_cache(self, source):
        source.fingerprint.side_effect = CollectionLoadError("transient")
        cache = CollectionCache(source)
        
        with pytest.raises(CollectionLoadError, match="transient"):
            cache.get()
    
    def test_local_file_change_detected(self, patents_file):
        cache = CollectionCache(LocalJSONSource(patents_file))
        assert cache.size == 0
        assert len(cache.get()) == 2
        
        patents_file.write_text('[{"app_no": "3"}]', encoding="utf-8")
        
        assert [d.identifier for d in cache.get()] == ["3"]
