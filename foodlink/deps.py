from functools import lru_cache

from foodlink.core.config import settings
from foodlink.services.oracle import build_oracle
from foodlink.services.tagger import StubImageTagger

if settings.use_mongo:
    from foodlink.core.db import get_db
    from foodlink.repos.mongo import MongoRepo
    _repo_singleton = MongoRepo(get_db())
else:
    from foodlink.repos.inmemory import InMemoryRepo
    _repo_singleton = InMemoryRepo()

def get_repo():
    return _repo_singleton

@lru_cache(maxsize=1)
def get_oracle():
    return build_oracle(settings.oracle_url, settings.oracle_timeout_s)

def get_tagger():
    return StubImageTagger()
