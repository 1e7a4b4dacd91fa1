"""Capability readiness: availability probing and model preparation.

Per capability the states are ``unavailable -> after-download -> readily`` plus an
absorbing ``error``. ``prepare()`` drives a capability from ``after-download`` to
``readily`` by creating a session, which makes the provider start fetching its assets.
"""

import asyncio
import logging
import time
from typing import Callable, Dict, Optional

from capabilities import Availability, CapabilityName
from config import PREPARE_POLL_INTERVAL, PREPARE_TIMEOUT
from constants import (
    AUTHORIZATION_REQUIRED_MESSAGE,
    CAPABILITY_LABELS,
    DOWNLOAD_REQUIRED_MESSAGE,
    UNSUPPORTED_MESSAGE,
)
from errors import CapabilityUnavailableError
from schemas import CapabilityStatus, OverallStatus, PrepareResult, ProgressUpdate

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[ProgressUpdate], None]

START_PERCENT = 1
INITIAL_DOWNLOAD_PERCENT = 5
DOWNLOAD_PERCENT_STEP = 5
MAX_DOWNLOAD_PERCENT = 90


def download_progress(cycle: int) -> int:
    """Estimated download progress after ``cycle`` polling cycles.

    Providers do not report real progress, so this is a bounded ramp from 5% to
    90%, not a measurement.
    """
    return min(MAX_DOWNLOAD_PERCENT, INITIAL_DOWNLOAD_PERCENT + DOWNLOAD_PERCENT_STEP * max(cycle, 0))


class ReadinessController:
    """Reports capability readiness and prepares capabilities that need a download."""

    def __init__(self, providers, poll_interval: float = PREPARE_POLL_INTERVAL,
                 timeout: float = PREPARE_TIMEOUT, sleep=asyncio.sleep, clock=time.monotonic):
        self._providers = providers
        self._poll_interval = poll_interval
        self._timeout = timeout
        self._sleep = sleep
        self._clock = clock

    async def probe(self, name: CapabilityName) -> CapabilityStatus:
        """Single non-blocking availability check for one capability."""
        name = CapabilityName(name)
        provider = self._providers.get(name)
        if provider is None or not provider.is_present():
            return CapabilityStatus(
                name=name.value,
                present=False,
                state=Availability.UNAVAILABLE.value,
                requires_external_authorization=bool(provider and provider.requires_authorization),
            )

        try:
            state = await provider.probe_availability()
        except Exception as e:
            logger.warning(f"{CAPABILITY_LABELS[name.value]} availability check failed: {str(e)}")
            return CapabilityStatus(
                name=name.value,
                present=True,
                state=Availability.ERROR.value,
                requires_external_authorization=provider.requires_authorization,
                error=str(e),
            )

        if state not in {a.value for a in Availability}:
            state = Availability.UNAVAILABLE.value
        return CapabilityStatus(
            name=name.value,
            present=True,
            state=state,
            requires_external_authorization=provider.requires_authorization,
        )

    async def probe_all(self) -> Dict[str, CapabilityStatus]:
        statuses = await asyncio.gather(*(self.probe(name) for name in CapabilityName))
        return {status.name: status for status in statuses}

    async def get_overall_status(self, statuses: Optional[Dict[str, CapabilityStatus]] = None) -> OverallStatus:
        if statuses is None:
            statuses = await self.probe_all()
        values = statuses.values()
        return OverallStatus(
            all_present=all(s.present for s in values),
            any_ready=any(s.state == Availability.READILY.value for s in values),
            authorization_needed=any(not s.present and s.requires_external_authorization for s in values),
            download_needed=any(s.state == Availability.AFTER_DOWNLOAD.value for s in values),
        )

    async def check_analysis_ready(self) -> Dict[str, CapabilityStatus]:
        """Probe all capabilities and require prompt or summarizer to be ready.

        Raises:
            CapabilityUnavailableError: With a remediation message when neither is ready
        """
        statuses = await self.probe_all()
        ready = {name for name, s in statuses.items() if s.state == Availability.READILY.value}
        if CapabilityName.PROMPT.value in ready or CapabilityName.SUMMARIZER.value in ready:
            return statuses

        message, hint = remediation_message(statuses)
        logger.error(f"No usable capability for analysis (hint={hint})")
        raise CapabilityUnavailableError(message, hint)

    async def prepare(self, name: CapabilityName, on_progress: Optional[ProgressCallback] = None,
                      output_language: Optional[str] = None) -> PrepareResult:
        """
        Drive a capability to the ``readily`` state.

        Args:
            name: Capability to prepare
            on_progress: Optional callback receiving ProgressUpdate values
            output_language: Language for the transient prompt session

        Returns:
            PrepareResult: ``ready`` on success, ``timeout`` when the download does not
            finish in time, ``error`` on failure, or the observed state when no
            download is possible
        """
        name = CapabilityName(name)

        def report(percent: int, status: str) -> None:
            if on_progress is None:
                return
            try:
                on_progress(ProgressUpdate(percent=percent, status=status))
            except Exception as e:
                logger.warning(f"Progress callback failed: {str(e)}")

        status = await self.probe(name)
        if status.state == Availability.READILY.value:
            report(100, "ready")
            return PrepareResult(success=True, status="ready")

        if status.state != Availability.AFTER_DOWNLOAD.value:
            return PrepareResult(
                success=False,
                status=status.state,
                error=status.error or "Capability not ready and no download available",
            )

        provider = self._providers[name]
        session = None
        try:
            report(START_PERCENT, "starting")
            logger.info(f"Starting model download for {CAPABILITY_LABELS[name.value]}")
            session = await provider.create_session(output_language=output_language)

            start = self._clock()
            cycle = 0
            report(download_progress(cycle), "downloading")
            while self._clock() - start < self._timeout:
                await self._sleep(self._poll_interval)
                state = await provider.probe_availability()
                if state == Availability.READILY.value:
                    report(100, "ready")
                    logger.info(f"{CAPABILITY_LABELS[name.value]} is ready")
                    return PrepareResult(success=True, status="ready")
                if download_progress(cycle) < MAX_DOWNLOAD_PERCENT:
                    cycle += 1
                    report(download_progress(cycle), "downloading")

            logger.warning(f"Model download timed out for {CAPABILITY_LABELS[name.value]}")
            return PrepareResult(success=False, status="timeout", error="Model download timed out")

        except Exception as e:
            logger.error(f"Model preparation failed for {CAPABILITY_LABELS[name.value]}: {str(e)}")
            return PrepareResult(success=False, status="error", error=str(e))

        finally:
            if session is not None:
                try:
                    await session.release()
                except Exception as e:
                    logger.warning(f"Failed to release preparation session: {str(e)}")


def remediation_message(statuses: Dict[str, CapabilityStatus]):
    """Pick the remediation message for unavailable capabilities.

    Returns:
        tuple: (message, hint) where hint is ``download``, ``authorization`` or
        ``unsupported``
    """
    for name in (CapabilityName.PROMPT.value, CapabilityName.SUMMARIZER.value):
        status = statuses.get(name)
        if status is not None and status.state == Availability.AFTER_DOWNLOAD.value:
            return DOWNLOAD_REQUIRED_MESSAGE.format(label=CAPABILITY_LABELS[name], capability=name), "download"

    token_capabilities = (CapabilityName.PROMPT.value, CapabilityName.REWRITER.value, CapabilityName.WRITER.value)
    if all(name in statuses and not statuses[name].present for name in token_capabilities):
        return AUTHORIZATION_REQUIRED_MESSAGE, "authorization"

    return UNSUPPORTED_MESSAGE, "unsupported"
