from answer_quality.infrastructure.stores.answer_store import (
    SqlAlchemyAnswerStore,
    SqlAlchemyScoreStore,
    SqlAlchemyValidationResultStore,
)
from answer_quality.infrastructure.stores.sqlalchemy_db import SessionProvider, get_db_url

__all__ = [
    "SqlAlchemyAnswerStore",
    "SqlAlchemyScoreStore",
    "SqlAlchemyValidationResultStore",
    "SessionProvider",
    "get_db_url",
]
