"""Application settings as one frozen dataclass."""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Settings read by the app and its test tooling. Immutable::

        app = App(AppConfig(debug=True, secret_key="s3cr3t"))
    """

    # Show tracebacks on 500 responses
    debug: bool = False

    secret_key: str = ""

    # Testing
    test_route_prefix: str = "/_test"  # DynamicTestScreen mounts screens under this
    max_redirects: int = 10  # TestClient raises TooManyRedirects past this many hops
