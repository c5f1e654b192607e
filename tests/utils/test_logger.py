#!filepath: tests/utils/test_logger.py
import pytest

from jobmatch import logs


def test_catch_reraises_and_returns():
    @logs.catch(msg="boom")
    def fails():
        raise RuntimeError("x")

    @logs.catch(log_inputs=True)
    def works(a, b=2):
        return a + b

    with pytest.raises(RuntimeError):
        fails()
    assert works(1, b=3) == 4
