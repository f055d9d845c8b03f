"""Tests for exception utilities."""

import pytest
from fastapi import HTTPException, status

from user_registry.utils.exceptions import (
    raise_bad_request,
    raise_internal_error,
    raise_not_found,
    raise_too_large,
    raise_unauthorized,
)


def test_raise_not_found():
    """
    GIVEN a resource name
    WHEN raise_not_found is called
    THEN it should raise HTTPException with 404 status
    """
    with pytest.raises(HTTPException) as exc_info:
        raise_not_found("User")

    assert exc_info.value.status_code == status.HTTP_404_NOT_FOUND
    assert exc_info.value.detail == "User not found"


def test_raise_not_found_with_cause():
    """
    GIVEN a resource name and a cause exception
    WHEN raise_not_found is called
    THEN it should raise HTTPException with the cause attached
    """
    cause = ValueError("Original error")

    with pytest.raises(HTTPException) as exc_info:
        raise_not_found("User", cause=cause)

    assert exc_info.value.__cause__ is cause


def test_raise_bad_request():
    """
    GIVEN a detail message
    WHEN raise_bad_request is called
    THEN it should raise HTTPException with 400 status
    """
    with pytest.raises(HTTPException) as exc_info:
        raise_bad_request("Username or email already exists")

    assert exc_info.value.status_code == status.HTTP_400_BAD_REQUEST
    assert exc_info.value.detail == "Username or email already exists"


def test_raise_unauthorized():
    """
    GIVEN a detail message
    WHEN raise_unauthorized is called
    THEN it should raise HTTPException with 401 status
    """
    with pytest.raises(HTTPException) as exc_info:
        raise_unauthorized("Invalid username or password")

    assert exc_info.value.status_code == status.HTTP_401_UNAUTHORIZED


def test_raise_too_large():
    """
    GIVEN a detail message
    WHEN raise_too_large is called
    THEN it should raise HTTPException with 413 status
    """
    with pytest.raises(HTTPException) as exc_info:
        raise_too_large("Image exceeds 5MB limit")

    assert exc_info.value.status_code == 413
    assert exc_info.value.detail == "Image exceeds 5MB limit"


def test_raise_internal_error_with_cause():
    """
    GIVEN a detail message and cause
    WHEN raise_internal_error is called
    THEN it should raise HTTPException with 500 status and the cause attached
    """
    cause = RuntimeError("connection reset")

    with pytest.raises(HTTPException) as exc_info:
        raise_internal_error("connection reset", cause=cause)

    assert exc_info.value.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
    assert exc_info.value.__cause__ is cause
