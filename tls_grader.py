"""
TLS grading client for the SSL Labs assessment API
"""
import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from config import SSL_LABS_API
from http_client import AnalysisError
from models import SSLEndpointReport, TLSAssessment, TLSState

logger = logging.getLogger(__name__)


class TLSTimeoutError(AnalysisError):
    """The grading job did not reach a terminal status within the attempt budget"""

    def __init__(self, hostname: str, attempts: int):
        super().__init__(f"TLS assessment for {hostname} still running after {attempts} polls")
        self.hostname = hostname
        self.attempts = attempts


class TLSGradeClient:
    """
    Starts an assessment job and polls it until READY, ERROR or TIMEOUT.

    State machine:
        STARTING -> POLLING -> READY | ERROR | TIMEOUT

    A job that cannot be started yields None instead of an assessment.
    Every poll waits ``poll_interval`` through the injected ``sleep`` first,
    so worst-case wall-clock time is ``max_attempts * poll_interval`` plus
    request time.
    """

    def __init__(self, client, api_url: str = SSL_LABS_API, max_attempts: int = 30,
                 poll_interval: float = 10.0,
                 sleep: Callable[[float], Awaitable[Any]] = None):
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.client = client
        self.api_url = api_url
        self.max_attempts = max_attempts
        self.poll_interval = poll_interval
        self.sleep = sleep or asyncio.sleep

    async def assess(self, hostname: str) -> Optional[TLSAssessment]:
        logger.info(f"Starting TLS assessment for {hostname}")
        state = TLSState.STARTING

        try:
            await self.start(hostname)
        except Exception as e:
            logger.error(f"Could not start TLS assessment for {hostname}: {e!r}")
            return None

        state = TLSState.POLLING
        attempts = 0
        try:
            while state is TLSState.POLLING:
                if attempts >= self.max_attempts:
                    raise TLSTimeoutError(hostname, attempts)

                await self.sleep(self.poll_interval)
                attempts += 1
                data = await self.poll(hostname)
                state = self.next_state(data)
                logger.debug(f"TLS poll {attempts}/{self.max_attempts} for {hostname}: {data.get('status')}")

        except TLSTimeoutError as e:
            logger.warning(str(e))
            return TLSAssessment(state=TLSState.TIMEOUT, attempts=attempts, error=str(e))
        except Exception as e:
            logger.error(f"TLS polling failed for {hostname}: {e!r}")
            return TLSAssessment(state=TLSState.ERROR, attempts=attempts, error=str(e) or repr(e))

        if state is TLSState.READY:
            endpoints = self.parse_endpoints(data)
            logger.info(f"TLS assessment for {hostname} ready after {attempts} polls "
                        f"({len(endpoints)} endpoints)")
            return TLSAssessment(state=state, endpoints=endpoints, attempts=attempts)

        message = data.get('statusMessage') or "TLS assessment failed"
        logger.warning(f"TLS assessment for {hostname} ended in ERROR: {message}")
        return TLSAssessment(state=TLSState.ERROR, attempts=attempts, error=message)

    async def start(self, hostname: str) -> Dict[str, Any]:
        return await self.client.get_json(
            self.api_url, params={'host': hostname, 'startNew': 'on', 'all': 'done'}
        )

    async def poll(self, hostname: str) -> Dict[str, Any]:
        data = await self.client.get_json(self.api_url, params={'host': hostname, 'all': 'done'})
        if not isinstance(data, dict):
            raise ValueError(f"Unexpected TLS grading payload: {type(data).__name__}")
        return data

    @staticmethod
    def next_state(data: Dict[str, Any]) -> TLSState:
        """Map the service's job status onto the client state machine"""
        status = data.get('status')
        if status == 'READY':
            return TLSState.READY
        if status == 'ERROR':
            return TLSState.ERROR
        return TLSState.POLLING

    @staticmethod
    def parse_endpoints(data: Dict[str, Any]) -> List[SSLEndpointReport]:
        return [
            SSLEndpointReport.from_dict(endpoint)
            for endpoint in data.get('endpoints') or []
            if isinstance(endpoint, dict)
        ]
