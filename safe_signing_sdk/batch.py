"""
Batch file loading and validation.
"""
import json
import logging
from pathlib import Path
from typing import Any, Union

from pydantic import ValidationError

from .exceptions import InvalidBatchError
from .models import Batch, SubTransaction

logger = logging.getLogger(__name__)

BATCH_SHAPE_HINT = "Need an array of { to, value, data, operation }"


def validate_batch(raw: Any) -> Batch:
    """
    Validate an untyped list of records and turn it into a Batch.

    Args:
        raw: Decoded JSON value, expected to be a list of objects with
            ``to``, ``value``, ``data`` and ``operation`` keys

    Returns:
        Immutable Batch in input order

    Raises:
        InvalidBatchError: On the first record that violates a rule, or if
            ``raw`` is not a list
    """
    if not isinstance(raw, list):
        raise InvalidBatchError(
            f"Transaction batch must be a list, got {type(raw).__name__}. {BATCH_SHAPE_HINT}"
        )

    transactions = []
    for index, record in enumerate(raw):
        if not isinstance(record, dict):
            raise InvalidBatchError(
                f"Transaction {index} must be an object, got {type(record).__name__}. {BATCH_SHAPE_HINT}",
                index=index,
            )
        try:
            transactions.append(SubTransaction.model_validate(record))
        except ValidationError as e:
            first = e.errors()[0]
            field = ".".join(str(part) for part in first.get("loc", ())) or None
            message = first.get("msg", str(e))
            raise InvalidBatchError(
                f"Transaction {index} has an invalid '{field}': {message}. {BATCH_SHAPE_HINT}",
                index=index,
                field=field,
            ) from e

    logger.debug(f"Validated batch of {len(transactions)} transaction(s)")
    return Batch(tuple(transactions))


def load_batch(path: Union[str, Path]) -> Batch:
    """
    Read a JSON batch file and validate it.

    Args:
        path: Location of the batch file

    Returns:
        Validated Batch

    Raises:
        InvalidBatchError: If the file cannot be read, is not JSON, or fails validation
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except OSError as e:
        raise InvalidBatchError(f"Cannot read transaction file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidBatchError(f"Transaction file {path} is not valid JSON: {e}") from e

    return validate_batch(raw)
