"""
Readiness Prober
Polls the local node with a JSON-RPC liveness request until it answers
"""

import asyncio
from typing import Optional
import aiohttp
from loguru import logger
from web3 import Web3


MAX_CHECK_COUNT = 10
CHECK_DELAY_SECONDS = 1.0
REQUEST_TIMEOUT_SECONDS = 2.0

LIVENESS_REQUEST = {
    "jsonrpc": "2.0",
    "method": "eth_blockNumber",
    "params": [],
    "id": 1
}


class ReadinessProber:
    """
    Bounded liveness polling for a JSON-RPC node

    Any HTTP 2xx answer counts as ready. Connection errors, timeouts and
    non-2xx answers are logged and count as a failed attempt. Polling stops
    after max_attempts, so the longest wait is (max_attempts - 1) * delay
    plus request time.
    """

    def __init__(
        self,
        rpc_url: str,
        max_attempts: int = MAX_CHECK_COUNT,
        delay: float = CHECK_DELAY_SECONDS,
        request_timeout: float = REQUEST_TIMEOUT_SECONDS,
        node_name: str = "Anvil",
        sleep=asyncio.sleep
    ):
        """
        Initialize prober

        Args:
            rpc_url: HTTP endpoint of the node
            max_attempts: Number of probes before giving up
            delay: Seconds to wait between probes
            request_timeout: Seconds allowed for a single probe
            node_name: Name used in status lines
            sleep: Coroutine used to wait between probes
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.rpc_url = rpc_url
        self.max_attempts = max_attempts
        self.delay = delay
        self.request_timeout = request_timeout
        self.node_name = node_name
        self._sleep = sleep

        self.attempts = 0
        self.ready = False
        self.block_number = None

    @classmethod
    def from_settings(cls, settings: dict, **kwargs) -> "ReadinessProber":
        """Build a prober from the 'node' and 'readiness' settings sections"""
        node = settings['node']
        readiness = settings['readiness']

        return cls(
            node['rpc_url'],
            max_attempts=readiness['max_check_count'],
            delay=readiness['check_delay_seconds'],
            request_timeout=readiness['request_timeout_seconds'],
            node_name=node['name'],
            **kwargs
        )

    async def wait_until_ready(self, skip: bool = False) -> bool:
        """
        Poll until the node answers or the attempt budget runs out

        Args:
            skip: Treat the node as ready without probing

        Returns:
            True if ready
        """
        self.attempts = 0
        self.ready = False
        self.block_number = None

        if skip:
            logger.debug(f"Skipping {self.node_name} readiness check")
            self.ready = True
            return True

        timeout = aiohttp.ClientTimeout(total=self.request_timeout)

        async with aiohttp.ClientSession(timeout=timeout) as session:
            while self.attempts < self.max_attempts:
                self.attempts += 1

                if await self._probe(session):
                    self.ready = True
                    break

                if self.attempts < self.max_attempts:
                    await self._sleep(self.delay)

        if self.ready:
            block = f" (block {self.block_number})" if self.block_number is not None else ""
            logger.success(
                f"{self.node_name} is ready after {self.attempts} attempt(s){block}"
            )
        else:
            logger.warning(
                f"{self.node_name} not reachable at {self.rpc_url} "
                f"after {self.attempts} attempts"
            )

        return self.ready

    async def _probe(self, session: aiohttp.ClientSession) -> bool:
        """
        Send one liveness request

        Args:
            session: aiohttp session

        Returns:
            True if the node answered with HTTP 2xx
        """
        try:
            async with session.post(self.rpc_url, json=LIVENESS_REQUEST) as response:
                if not 200 <= response.status < 300:
                    logger.info(
                        f"{self.node_name} answered HTTP {response.status}, "
                        f"waiting for it to start... "
                        f"(attempt {self.attempts}/{self.max_attempts})"
                    )
                    return False

                self.block_number = await self._read_block_number(response)
                return True

        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.info(
                f"{self.node_name} is not running, waiting for it to start... "
                f"(attempt {self.attempts}/{self.max_attempts}: {e!r})"
            )
            return False

    async def _read_block_number(self, response: aiohttp.ClientResponse) -> Optional[int]:
        """Decode the block number from a successful answer, if there is one"""
        try:
            payload = await response.json(content_type=None)
            return Web3.to_int(hexstr=payload['result'])
        except (ValueError, TypeError, KeyError, aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.debug(f"Ignoring unreadable liveness payload: {e}")
            return None
