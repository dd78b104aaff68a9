import pytest
from django.test import SimpleTestCase, TransactionTestCase


@pytest.fixture(autouse=True)
def _simple_test_case_db_blocking(request, django_db_blocker):
    """Match Django's runner for SimpleTestCase under pytest-django.

    Django's SimpleTestCase only forbids opening connections and cursors;
    it still lets framework code (e.g. channels' close_old_connections on
    each consumer dispatch) inspect an already-open connection.
    """
    cls = getattr(request, "cls", None)
    if cls is not None and issubclass(cls, SimpleTestCase) and not issubclass(cls, TransactionTestCase):
        with django_db_blocker.unblock():
            yield
    else:
        yield
