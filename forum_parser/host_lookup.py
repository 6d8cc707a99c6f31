"""
호스트 이름 조회 (osu! API v2)

작성자 유저 ID → 유저 이름. 파서에는 (int) -> Optional[str] 호출 가능 객체로 주입한다.
- OAuth client credentials 토큰 (만료 직전까지 재사용)
- 요청 간 최소 간격 (스레드 안전)
- 429: 지수 백오프 재시도 / 401: 토큰 폐기 후 1회 재시도 / 네트워크 오류: 1초 후 재시도
"""
import threading
import time
from typing import Callable, Dict, Optional

import httpx
from loguru import logger

from .config import osu_api_config, OsuApiConfig
from .exceptions import AuthenticationError, LookupNetworkError, RateLimitError

# 토큰 만료 전 여유 시간 (초)
TOKEN_EXPIRY_MARGIN = 60
NETWORK_RETRY_DELAY = 1.0


class OsuUserLookup:
    """osu! API v2 유저 이름 조회 클라이언트"""

    def __init__(
        self,
        config: Optional[OsuApiConfig] = None,
        client: Optional[httpx.Client] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.config = config or osu_api_config
        self.client = client or httpx.Client(
            timeout=self.config.request_timeout,
            headers={"User-Agent": self.config.user_agent, "Accept": "application/json"},
        )
        self._sleep = sleep
        self._lock = threading.Lock()
        self._last_request_at: Optional[float] = None
        self._token: Optional[str] = None
        self._token_expires_at = 0.0

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()

    def __call__(self, user_id: int) -> Optional[str]:
        return self.lookup_username(user_id)

    def close(self) -> None:
        self.client.close()

    # ==================== 토큰 ====================

    def _get_token(self) -> str:
        """client credentials 토큰 (캐시)"""
        if self._token and time.monotonic() < self._token_expires_at:
            return self._token

        if not self.config.client_id or not self.config.client_secret:
            raise AuthenticationError("osu! API client credentials are not configured")

        try:
            response = self.client.post(
                self.config.token_url,
                data={
                    "client_id": self.config.client_id,
                    "client_secret": self.config.client_secret,
                    "grant_type": "client_credentials",
                    "scope": "public",
                },
            )
        except httpx.TransportError as e:
            raise LookupNetworkError(f"Token request failed: {e}") from e

        if response.status_code != 200:
            raise AuthenticationError(f"Token request rejected (HTTP {response.status_code})")

        payload = response.json()
        token = payload.get("access_token")
        if not token:
            raise AuthenticationError("Token response did not contain an access token")

        expires_in = int(payload.get("expires_in", 3600))
        self._token = token
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0)
        logger.debug(f"osu! API 토큰 발급 (만료까지 {expires_in}초)")
        return token

    def _invalidate_token(self) -> None:
        self._token = None
        self._token_expires_at = 0.0

    # ==================== 요청 ====================

    def _enforce_rate_limit(self) -> None:
        """직전 요청 이후 최소 간격 보장 (호출 측에서 락 보유)"""
        if self._last_request_at is not None:
            elapsed = time.monotonic() - self._last_request_at
            remaining = self.config.rate_limit_delay - elapsed
            if remaining > 0:
                self._sleep(remaining)
        self._last_request_at = time.monotonic()

    def _request(self, path: str, params: Optional[Dict] = None) -> httpx.Response:
        url = f"{self.config.api_base}{path}"
        attempt = 0
        network_retried = False
        auth_retried = False

        while True:
            token = self._get_token()
            with self._lock:
                self._enforce_rate_limit()
                try:
                    response = self.client.get(
                        url, params=params, headers={"Authorization": f"Bearer {token}"}
                    )
                except httpx.TransportError as e:
                    if network_retried:
                        raise LookupNetworkError(f"Request to {path} failed: {e}") from e
                    network_retried = True
                    logger.warning(f"네트워크 오류, {NETWORK_RETRY_DELAY}초 후 재시도: {e}")
                    self._sleep(NETWORK_RETRY_DELAY)
                    continue

            if response.status_code == 429:
                attempt += 1
                if attempt > self.config.max_retries:
                    raise RateLimitError(f"Rate limit exceeded after {self.config.max_retries} retries")
                wait_time = self.config.backoff_base * (2 ** (attempt - 1))
                logger.warning(f"레이트 리밋, {wait_time}초 후 재시도 ({attempt}/{self.config.max_retries})")
                self._sleep(wait_time)
                continue

            if response.status_code == 401:
                self._invalidate_token()
                if auth_retried:
                    raise AuthenticationError("Access token rejected by osu! API")
                auth_retried = True
                logger.warning("토큰 만료, 재발급 후 재시도")
                continue

            return response

    def lookup_username(self, user_id: int) -> Optional[str]:
        """유저 ID → 유저 이름 (없는 유저는 None)"""
        response = self._request(f"/users/{user_id}", params={"key": "id"})

        if response.status_code == 404:
            logger.debug(f"osu! 유저 없음: {user_id}")
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise LookupNetworkError(f"User lookup failed (HTTP {response.status_code})") from e

        username = response.json().get("username")
        return username or None


class CachedUserLookup:
    """유저 ID별 조회 결과 캐시 (None 결과도 캐시, 스레드 안전)"""

    def __init__(self, inner: Callable[[int], Optional[str]]):
        self.inner = inner
        self._cache: Dict[int, Optional[str]] = {}
        self._lock = threading.Lock()

    def __call__(self, user_id: int) -> Optional[str]:
        return self.lookup_username(user_id)

    def lookup_username(self, user_id: int) -> Optional[str]:
        with self._lock:
            if user_id in self._cache:
                return self._cache[user_id]

        username = self.inner(user_id)

        with self._lock:
            self._cache[user_id] = username
        return username

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
