"""Test fakes for mindevc."""
from .fake_http import FakeHttpServer

__all__ = ["FakeHttpServer"]
