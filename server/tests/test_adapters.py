"""
Adapter tests for Firestore, Pinecone and OpenAI, run offline against stub clients.

Covers:
- Firestore key forms: native id, then the derived object id in lower and upper case;
  one batched get_all for every form of every id, results in request order.
- Pinecone responses as dicts or attribute objects; 429 -> RateLimited, 404 -> NotFound;
  control-plane calls (has_index, describe_index) made off the event loop thread.
- OpenAI vendor errors translated to RateLimited / EmbeddingTimeout; vectors
  reordered by index.

Run:
----
    pytest server/tests/test_adapters.py -v
"""

import asyncio
import threading
from types import SimpleNamespace

import httpx
import openai
import pytest

from recommender.errors import ConfigurationError, EmbeddingTimeout, NotFound, RateLimited
from recommender.models import ContentType
from recommender.ports import EmbeddingRecord, VectorMatch
from recommender.tests.fakes import HEAT, M1
from server.services.embedding_generator import EmbeddingGenerator
from server.services.firestore_repository import FirestoreContentRepository, _candidate_keys
from server.services.pinecone_index import PineconeVectorIndex, _is_rate_limited, matches_from_response

OPENAI_URL = "https://api.openai.com/v1/embeddings"


# =============================================================================
# Firestore stubs
# =============================================================================


class StubSnapshot:
    def __init__(self, doc_id, data):
        self.id = doc_id
        self._data = data
        self.exists = data is not None

    def to_dict(self):
        return dict(self._data) if self._data is not None else None


class StubDocumentRef:
    def __init__(self, collection, key):
        self.collection = collection
        self.key = key

    async def get(self):
        self.collection.client.reads.append(self.key)
        return StubSnapshot(self.key, self.collection.docs.get(self.key))


class StubCollection:
    def __init__(self, client, docs):
        self.client = client
        self.docs = docs

    def document(self, key):
        return StubDocumentRef(self, key)


class StubFirestore:
    """Just enough of AsyncClient for keyed reads and get_all."""

    def __init__(self, collections):
        self.reads = []
        self.batches = []
        self._collections = {name: StubCollection(self, docs) for name, docs in collections.items()}

    def collection(self, name):
        return self._collections.setdefault(name, StubCollection(self, {}))

    async def get_all(self, refs):
        refs = list(refs)
        self.batches.append([r.key for r in refs])
        for ref in refs:
            yield StubSnapshot(ref.key, ref.collection.docs.get(ref.key))


def firestore(docs):
    client = StubFirestore({"movies": docs})
    return FirestoreContentRepository(client=client), client


class TestFirestoreKeys:
    def test_candidate_keys(self):
        assert _candidate_keys(M1) == [M1, M1.upper()]
        assert _candidate_keys({"$oid": M1.upper()}) == [M1, M1.upper()]
        assert _candidate_keys("tt0111161") == ["tt0111161"]
        assert _candidate_keys("a/b") == []
        assert _candidate_keys(None) == []

    def test_native_hit_reads_once(self):
        repo, client = firestore({M1: {"title": "Rocky 2"}})
        item = asyncio.run(repo.find_by_id(M1, ContentType.MOVIE))
        assert item.title == "Rocky 2"
        assert client.reads == [M1]

    def test_upper_case_document_key_is_found(self):
        repo, client = firestore({M1.upper(): {"title": "Rocky 2"}})
        item = asyncio.run(repo.find_by_id(M1, ContentType.MOVIE))
        assert item.id == M1
        assert client.reads == [M1, M1.upper()]

    def test_find_many_single_batch_in_request_order(self):
        repo, client = firestore({HEAT: {"title": "Heat"}, M1.upper(): {"title": "Rocky 2"}})
        found = asyncio.run(repo.find_many_by_ids([M1, "nope", HEAT], ContentType.MOVIE))
        assert [i.id for i in found] == [M1, HEAT]
        assert client.batches == [[M1, M1.upper(), "nope", HEAT, HEAT.upper()]]


# =============================================================================
# Pinecone
# =============================================================================


class StubApiError(Exception):
    def __init__(self, status, message="error"):
        super().__init__(f"({status}) {message}")
        self.status = status


class StubAsyncIndex:
    def __init__(self, owner):
        self.owner = owner

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        return False

    async def query(self, **kwargs):
        self.owner.queries.append(kwargs)
        if self.owner.error is not None:
            raise self.owner.error
        return self.owner.response

    async def upsert(self, vectors, namespace=None):
        self.owner.upserts.append(vectors)


class StubPinecone:
    """Sync control plane plus IndexAsyncio; records the thread of each control call."""

    def __init__(self, response=None, error=None):
        self.response = response or {"matches": []}
        self.error = error
        self.queries = []
        self.upserts = []
        self.control_threads = []
        self.describe_calls = 0

    def has_index(self, name):
        self.control_threads.append(threading.get_ident())
        return True

    def describe_index(self, name):
        self.control_threads.append(threading.get_ident())
        self.describe_calls += 1
        return {"host": "stub-host"}

    def IndexAsyncio(self, host):
        assert host == "stub-host"
        return StubAsyncIndex(self)


def pinecone_index(stub):
    index = PineconeVectorIndex(api_key="test-key")
    index._client = stub
    return index


class TestPineconeResponses:
    def test_dict_matches(self):
        response = {
            "matches": [
                {"id": "a", "score": 0.5, "metadata": {"type": "movie"}},
                {"id": "b", "score": 0.4},
                {"id": None, "score": 1.0},
                {"id": "c"},
            ]
        }
        assert matches_from_response(response) == [
            VectorMatch(id="a", score=0.5, type_tag="movie"),
            VectorMatch(id="b", score=0.4, type_tag=None),
        ]

    def test_attribute_matches(self):
        response = SimpleNamespace(matches=[SimpleNamespace(id="g", score=0.9, metadata={"type": "game"})])
        assert matches_from_response(response) == [VectorMatch(id="g", score=0.9, type_tag="game")]

    def test_rate_limit_detection(self):
        assert _is_rate_limited(StubApiError(429))
        assert _is_rate_limited(Exception("Too Many Requests"))
        assert not _is_rate_limited(StubApiError(500, "boom"))


class TestPineconeIndex:
    def test_query_by_id(self):
        stub = StubPinecone(response={"matches": [{"id": HEAT, "score": 0.8, "metadata": {"type": "movie"}}]})
        index = pinecone_index(stub)

        async def run():
            first = await index.query_by_id(M1, 3)
            await index.query_by_id(M1, 3)
            return first

        assert asyncio.run(run()) == [VectorMatch(id=HEAT, score=0.8, type_tag="movie")]
        assert stub.queries[0]["id"] == M1
        assert stub.queries[0]["top_k"] == 3
        assert stub.queries[0]["include_metadata"] is True
        assert stub.describe_calls == 1

    def test_control_plane_runs_off_event_loop_thread(self):
        stub = StubPinecone()
        asyncio.run(pinecone_index(stub).query_by_id(M1, 3))
        assert stub.control_threads
        assert threading.get_ident() not in stub.control_threads

    def test_429_is_rate_limited(self):
        with pytest.raises(RateLimited):
            asyncio.run(pinecone_index(StubPinecone(error=StubApiError(429))).query_by_id(M1, 3))

    def test_404_is_not_found(self):
        with pytest.raises(NotFound):
            asyncio.run(pinecone_index(StubPinecone(error=StubApiError(404))).query_by_id(M1, 3))

    def test_other_errors_propagate(self):
        with pytest.raises(StubApiError):
            asyncio.run(pinecone_index(StubPinecone(error=StubApiError(500))).query_by_id(M1, 3))

    def test_upsert_batches_with_type_metadata(self):
        stub = StubPinecone()
        records = [EmbeddingRecord(id=f"id{i}", vector=[0.1, 0.2], type_tag="anime") for i in range(150)]
        asyncio.run(pinecone_index(stub).upsert(records))
        assert [len(batch) for batch in stub.upserts] == [100, 50]
        assert stub.upserts[0][0] == {"id": "id0", "values": [0.1, 0.2], "metadata": {"type": "anime"}}

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            PineconeVectorIndex(api_key="")


# =============================================================================
# OpenAI
# =============================================================================


class StubEmbeddings:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.response


def generator(response=None, error=None):
    gen = EmbeddingGenerator(api_key="test-key", model="text-embedding-3-small", dimensions=3)
    embeddings = StubEmbeddings(response, error)
    gen._client = SimpleNamespace(embeddings=embeddings)
    return gen, embeddings


class TestEmbeddingGenerator:
    def test_vectors_in_input_order(self):
        response = SimpleNamespace(
            data=[
                SimpleNamespace(index=1, embedding=[2.0, 2.0, 2.0]),
                SimpleNamespace(index=0, embedding=[1.0, 1.0, 1.0]),
            ]
        )
        gen, embeddings = generator(response=response)
        vectors = asyncio.run(gen.embed_batch(["first", "second"]))
        assert vectors == [[1.0, 1.0, 1.0], [2.0, 2.0, 2.0]]
        assert embeddings.calls == [{"model": "text-embedding-3-small", "input": ["first", "second"], "dimensions": 3}]

    def test_rate_limit_translated(self):
        error = openai.RateLimitError(
            "rate limited",
            response=httpx.Response(429, request=httpx.Request("POST", OPENAI_URL)),
            body=None,
        )
        gen, _ = generator(error=error)
        with pytest.raises(RateLimited):
            asyncio.run(gen.embed_batch(["text"]))

    def test_timeout_translated(self):
        gen, _ = generator(error=openai.APITimeoutError(request=httpx.Request("POST", OPENAI_URL)))
        with pytest.raises(EmbeddingTimeout):
            asyncio.run(gen.embed_batch(["text"]))

    def test_empty_batch_makes_no_call(self):
        gen, embeddings = generator()
        assert asyncio.run(gen.embed_batch([])) == []
        assert embeddings.calls == []

    def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            asyncio.run(EmbeddingGenerator(api_key=None).embed_batch(["text"]))
