"""
Word Store Factory
Centralizes the logic for selecting the configured adapters.
"""

from wordloop.application.config import AppConfig
from wordloop.application.review_service import ReviewService
from wordloop.domain.errors import InvalidInput
from wordloop.domain.ports import IdentityGate, WordStore
from wordloop.domain.scheduler import StagePolicy
from wordloop.infrastructure.adapters.file_store import FileWordStore
from wordloop.infrastructure.adapters.sheet_store import SheetWordStore
from wordloop.infrastructure.auth.token_gate import TokenIdentityGate


def get_word_store(config: AppConfig) -> WordStore:
    """
    Returns the WordStore implementation selected by config.backend.
    """
    if config.backend == "sheet":
        if not config.store_url:
            raise InvalidInput("backend 'sheet' needs store_url (WORDLOOP_STORE_URL)")
        return SheetWordStore(url=config.store_url, timeout=config.request_timeout)

    return FileWordStore(path=config.words_file)


def get_identity_gate(config: AppConfig) -> IdentityGate:
    return TokenIdentityGate(
        token_path=config.token_file,
        allowed_emails=config.allowed_emails,
        safety_buffer=config.token_safety_buffer,
        max_skew=config.token_max_skew,
    )


def get_review_service(config: AppConfig) -> ReviewService:
    return ReviewService(
        store=get_word_store(config),
        gate=get_identity_gate(config),
        policy=StagePolicy(pass_threshold=config.pass_threshold),
        max_retries=config.flush_retries,
        retry_delay=config.retry_delay,
    )
