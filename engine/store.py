"""Session helpers shared by the engine components."""

from contextlib import contextmanager
import logging

from sqlalchemy.exc import SQLAlchemyError

from engine.errors import NotFound, PartialWriteFailure

logger = logging.getLogger(__name__)


def get_or_raise(session, model, object_id, label=None):
    """Load ``model`` by primary key or raise :class:`NotFound`."""
    instance = session.get(model, object_id) if object_id is not None else None
    if instance is None:
        raise NotFound(f'{label or model.__name__} {object_id} not found')
    return instance


@contextmanager
def batch(session, description: str):
    """Commit every write made inside the block together.

    On a database failure the whole batch is rolled back and reported as
    :class:`PartialWriteFailure`. Engine errors raised inside the block also
    roll back, then propagate unchanged.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.warning('Batch "%s" failed and was rolled back: %s', description, exc)
        raise PartialWriteFailure(f'Could not save {description}; nothing was written') from exc
    except Exception:
        session.rollback()
        raise
