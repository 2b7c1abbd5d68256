from .mocks import MockTransport, RaisingTransport, SlicingTransport, make_page

__all__ = [
    "MockTransport",
    "RaisingTransport",
    "SlicingTransport",
    "make_page",
]
