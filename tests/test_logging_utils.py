import logging

import numpy as np

from arrowsheet import Quiver, VariableSpec
from arrowsheet.logging_utils import _safe_repr, debug_log_call, format_complex


def test_format_complex():
    assert format_complex(1.5 + 2j) == "1.5+2i"
    assert format_complex(1 - 0.5j) == "1-0.5i"
    assert format_complex(-0.25j) == "-0.25i"
    assert format_complex(3 + 0j) == "3"


def test_safe_repr_summarises_arrows_and_arrays():
    quiver = Quiver()
    a = quiver.add(VariableSpec(1))

    assert _safe_repr(a) == "<variable #0 'a'>"
    assert _safe_repr(np.arange(10.0)) == "ndarray(shape=(10,), min=0, max=9)"
    assert _safe_repr(a.handle) == "ComplexHandle(re=0, im=1)"


def test_debug_log_call_traces_entry_and_exit(caplog):
    logger = logging.getLogger("arrowsheet.tests.tracing")

    @debug_log_call(logger)
    def double(x):
        return 2 * x

    with caplog.at_level(logging.DEBUG, logger=logger.name):
        assert double(2j) == 4j

    messages = [record.getMessage() for record in caplog.records]
    assert any(m.startswith("Entering") and "args=[2i]" in m for m in messages)
    assert any(m.endswith("-> 4i") for m in messages)
