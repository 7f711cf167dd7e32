from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

import httpx
import structlog

from livequiz.core.config import get_settings

logger = structlog.get_logger(__name__)


class RewardVaultError(Exception):
    pass


class RewardVaultRejectedError(RewardVaultError):
    pass


@dataclass(frozen=True, slots=True)
class RewardClaimReceipt:
    receipt: str


def reward_claim_idempotency_key(session_id: UUID) -> str:
    return f"live-session-reward:{session_id}"


class RewardVault(Protocol):
    async def claim(
        self,
        *,
        session_id: UUID,
        ledger_address: str,
        idempotency_key: str,
    ) -> RewardClaimReceipt: ...


class HttpRewardVault:
    """Client for the escrow vault service that releases a finished session's reward."""

    def __init__(
        self,
        *,
        base_url: str,
        token: str = "",
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self, idempotency_key: str) -> dict[str, str]:
        headers = {"Idempotency-Key": idempotency_key}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    async def claim(
        self,
        *,
        session_id: UUID,
        ledger_address: str,
        idempotency_key: str,
    ) -> RewardClaimReceipt:
        """Ask the vault to release the reward.

        The vault must treat repeated requests with the same idempotency key as one
        claim and answer them with the original receipt.
        """
        body = {
            "session_id": str(session_id),
            "ledger_address": ledger_address,
            "idempotency_key": idempotency_key,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_seconds,
                transport=self._transport,
            ) as client:
                response = await client.post(
                    f"{self._base_url}/claims",
                    json=body,
                    headers=self._headers(idempotency_key),
                )
        except httpx.HTTPError as exc:
            logger.exception("reward_vault_request_failed", session_id=str(session_id))
            raise RewardVaultError(str(exc)) from exc

        if response.status_code in {400, 403, 409, 422}:
            logger.warning(
                "reward_vault_claim_refused",
                session_id=str(session_id),
                status_code=response.status_code,
            )
            raise RewardVaultRejectedError(response.text)
        if response.is_error:
            logger.warning(
                "reward_vault_unavailable",
                session_id=str(session_id),
                status_code=response.status_code,
            )
            raise RewardVaultError(f"vault responded with {response.status_code}")

        payload = response.json()
        receipt = str(payload.get("receipt") or "").strip() if isinstance(payload, dict) else ""
        if not receipt:
            raise RewardVaultError("vault response is missing a receipt")
        return RewardClaimReceipt(receipt=receipt[:128])


def build_reward_vault() -> HttpRewardVault:
    settings = get_settings()
    return HttpRewardVault(
        base_url=settings.reward_vault_url,
        token=settings.reward_vault_token,
        timeout_seconds=settings.reward_vault_timeout_seconds,
    )
