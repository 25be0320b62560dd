"""Tests for the client ring buffer."""

import pytest

from cor_matrix.client.buffer import RingBuffer


def test_enqueue_refuses_when_full() -> None:
    buffer: RingBuffer[str] = RingBuffer(3)
    assert all(buffer.enqueue(item) for item in ("a", "b", "c"))
    assert buffer.enqueue("d") is False
    assert buffer.is_full()
    assert buffer.dequeue(3) == ["a", "b", "c"]
    assert buffer.is_empty()


def test_dequeue_is_fifo_and_bounded() -> None:
    buffer: RingBuffer[int] = RingBuffer(5)
    for item in range(4):
        buffer.enqueue(item)
    assert buffer.dequeue(2) == [0, 1]
    assert buffer.dequeue(10) == [2, 3]
    assert buffer.dequeue(1) == []


def test_wraparound_preserves_order() -> None:
    buffer: RingBuffer[int] = RingBuffer(3)
    for item in (1, 2, 3):
        buffer.enqueue(item)
    buffer.dequeue(2)
    buffer.enqueue(4)
    buffer.enqueue(5)
    assert buffer.snapshot() == [3, 4, 5]
    assert len(buffer) == 3
    assert buffer.dequeue(3) == [3, 4, 5]


def test_capacity_must_be_positive() -> None:
    with pytest.raises(ValueError):
        RingBuffer(0)
