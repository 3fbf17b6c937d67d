"""Unit tests for domain → HTTP error translation."""

import importlib
import warnings

from careops.domain.exceptions import (
    EntityNotFoundError,
    StoreUnavailableError,
    UnauthorizedError,
    ValidationFailedError,
)
from careops.presentation.api import errors


def test_domain_errors_map_to_status_codes():
    assert errors.to_http_exception(EntityNotFoundError("clients", "c-1")).status_code == 404
    assert errors.to_http_exception(UnauthorizedError("write", "vitals")).status_code == 403
    assert errors.to_http_exception(ValidationFailedError("Status", "bad")).status_code == 422
    assert errors.to_http_exception(StoreUnavailableError("get", "clients")).status_code == 503
    assert errors.to_http_exception(RuntimeError("boom")).status_code == 500


def test_error_module_imports_without_deprecation_warnings():
    with warnings.catch_warnings():
        warnings.simplefilter("error", DeprecationWarning)
        importlib.reload(errors)
