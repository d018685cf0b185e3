"""Unit tests for correlation id tracking."""

import asyncio

import pytest

from tuya_mqtt.correlation import (
    correlation_context,
    ensure_correlation_id,
    generate_correlation_id,
    get_correlation_id,
    set_correlation_id,
)


@pytest.fixture(autouse=True)
def clear_correlation_id():
    set_correlation_id(None)
    yield
    set_correlation_id(None)


class TestCorrelation:
    """Tests for the correlation helpers"""

    def test_generate_is_unique(self):
        """Test generated ids are 32-char hex and unique"""
        first, second = generate_correlation_id(), generate_correlation_id()
        assert len(first) == 32
        assert first != second

    def test_context_restores_previous(self):
        """Test the previous id is restored after the block"""
        set_correlation_id("outer")
        with correlation_context() as inner:
            assert get_correlation_id() == inner
            assert inner != "outer"
        assert get_correlation_id() == "outer"

    def test_explicit_id(self):
        """Test an explicit id is used verbatim"""
        with correlation_context("abc123") as corr_id:
            assert corr_id == "abc123"
            assert get_correlation_id() == "abc123"

    def test_no_auto_generate(self):
        """Test auto_generate=False keeps the id unset"""
        with correlation_context(auto_generate=False) as corr_id:
            assert corr_id is None
            assert get_correlation_id() is None

    def test_ensure_generates_once(self):
        """Test ensure_correlation_id() is stable once set"""
        first = ensure_correlation_id()
        assert ensure_correlation_id() == first

    @pytest.mark.asyncio
    async def test_inherited_by_tasks(self):
        """Test tasks created inside the block see its id"""

        async def read_id():
            return get_correlation_id()

        with correlation_context("task-id"):
            task = asyncio.create_task(read_id())
        assert await task == "task-id"
