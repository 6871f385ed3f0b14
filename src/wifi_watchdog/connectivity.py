# ─── Standard library imports ───
import time
import socket
import threading
from enum import Enum, auto
from typing import Optional
from dataclasses import dataclass

# ─── Third-party imports ───
import requests
from urllib3.exceptions import NameResolutionError

# ─── Project imports ───
from .config import Config
from .logger import get_logger
from .nmcli import ManagerConnectivity, NetworkManagerClient


logger = get_logger("connectivity")


class FailureClass(Enum):
    NONE = auto()
    DNS_FAILURE = auto()
    CONNECT_FAILURE = auto()
    TIMEOUT = auto()
    UNEXPECTED_RESPONSE = auto()


@dataclass(frozen=True)
class ConnectivityVerdict:
    """Result of one probe; consumed immediately, never persisted."""
    reachable: bool
    failure_class: FailureClass = FailureClass.NONE
    status_code: Optional[int] = None


def _is_name_resolution_error(exc: BaseException) -> bool:
    """
    Walk the exception chain (cause, context, urllib3 `reason`, args)
    looking for a DNS resolution failure.
    """
    pending: list = [exc]
    seen: set[int] = set()

    while pending:
        current = pending.pop()
        if not isinstance(current, BaseException) or id(current) in seen:
            continue
        seen.add(id(current))

        if isinstance(current, (NameResolutionError, socket.gaierror)):
            return True

        pending.extend([
            current.__cause__,
            current.__context__,
            getattr(current, "reason", None),
        ])
        pending.extend(current.args)

    return False


class ConnectivityProber:
    """
    Internet liveness oracle.

    Issues a bounded GET against a connectivity-check endpoint that answers
    204 No Content. The body is never parsed; anything other than the
    expected status is "not reachable".
    """

    def __init__(
        self,
        url: str = Config.CONNECTIVITY_CHECK_URL,
        timeout_s: float = Config.CONNECTIVITY_TIMEOUT_S,
        connect_timeout_s: float = Config.CONNECTIVITY_CONNECT_TIMEOUT_S,
        expected_status: int = Config.CONNECTIVITY_EXPECTED_STATUS,
        manager: Optional[NetworkManagerClient] = None,
    ):
        self.url = url
        self.timeout_s = timeout_s
        self.connect_timeout_s = connect_timeout_s
        self.expected_status = expected_status
        self.manager = manager
        self.last_probe_epoch = 0

    @property
    def request_timeout(self) -> tuple[float, float]:
        """
        (connect, read) budgets for requests.

        requests applies the read budget per socket read, so these only
        shorten the common failures; `probe()` enforces the overall
        deadline of `timeout_s`.
        """
        connect = min(self.connect_timeout_s, self.timeout_s)
        read = max(self.timeout_s - connect, 0.5)
        return connect, read

    def probe(self) -> ConnectivityVerdict:
        """
        Run one connectivity check, never blocking longer than `timeout_s`.

        The GET runs on a daemon worker thread. When the deadline passes
        (slow DNS, an endpoint trickling its headers) the request is
        abandoned and the verdict is TIMEOUT.
        """
        logger.debug("Checking internet connectivity...")
        self.last_probe_epoch = int(time.time())

        outcome: dict = {}
        worker = threading.Thread(
            target=self._fetch,
            args=(outcome,),
            name="connectivity-probe",
            daemon=True,
        )
        worker.start()
        worker.join(self.timeout_s)

        if worker.is_alive():
            logger.debug(f"No answer within {self.timeout_s}s; abandoning request")
            return ConnectivityVerdict(False, FailureClass.TIMEOUT)

        if "error" in outcome:
            return self._classify_error(outcome["error"])

        resp = outcome["response"]
        if resp.status_code == self.expected_status:
            logger.debug(f"Internet connectivity confirmed (HTTP {resp.status_code})")
            return ConnectivityVerdict(True, FailureClass.NONE, resp.status_code)

        logger.debug(
            f"Unexpected HTTP response: {resp.status_code} "
            f"(expected {self.expected_status})"
        )
        return ConnectivityVerdict(
            False, FailureClass.UNEXPECTED_RESPONSE, resp.status_code
        )

    def _fetch(self, outcome: dict) -> None:
        try:
            outcome["response"] = requests.get(
                self.url,
                timeout=self.request_timeout,
                allow_redirects=False,
            )
        except Exception as exc:
            # Classified (or re-raised) on the calling thread
            outcome["error"] = exc

    def _classify_error(self, exc: Exception) -> ConnectivityVerdict:
        if isinstance(exc, requests.Timeout):
            logger.debug("Connection timed out")
            return ConnectivityVerdict(False, FailureClass.TIMEOUT)

        if isinstance(exc, requests.ConnectionError):
            if _is_name_resolution_error(exc):
                logger.debug("Could not resolve host")
                return ConnectivityVerdict(False, FailureClass.DNS_FAILURE)
            logger.debug(f"Failed to connect to host ({exc.__class__.__name__})")
            return ConnectivityVerdict(False, FailureClass.CONNECT_FAILURE)

        if isinstance(exc, requests.RequestException):
            logger.debug(f"Connectivity request failed ({exc.__class__.__name__})")
            return ConnectivityVerdict(False, FailureClass.CONNECT_FAILURE)

        raise exc

    def manager_verdict(self) -> Optional[ManagerConnectivity]:
        """
        NetworkManager's own connectivity verdict, when a client is wired in.

        Diagnostic only: the HTTP probe stays authoritative.
        """
        if self.manager is None:
            return None

        verdict = self.manager.connectivity_check()
        logger.debug(f"NetworkManager reports connectivity: {verdict.value}")
        return verdict
