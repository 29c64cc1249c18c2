"""
Strategy lifecycle service for Strategy Forge.

PURPOSE: Own every status transition and performance mutation of persisted
strategies: compose, save, deploy, subscribe, stop, publish, refresh, delete,
plus wallet connection and the per-wallet user profile.

Collections are stored whole under "savedStrategies" and "publishedStrategies";
each mutation is a read-modify-write of the full collection performed under a
single asyncio.Lock, re-reading the latest snapshot after any chain call.

The service does not deduplicate re-entrant deploys of the same record; the
API layer guards in-flight operations per record.

CALLED BY: api/routes_strategies.py, api/routes_wallet.py, main.py (construction)
"""

import asyncio
import json
import random
from typing import Any, Optional

from pydantic import ValidationError

from app.bridge.chain_client import ChainClient
from app.config.constants import (
    PUBLISHED_STRATEGIES_KEY,
    SAVED_STRATEGIES_KEY,
    USER_PROFILE_KEY_PREFIX,
    StrategyStatus,
)
from app.engine.lifecycle import (
    InvalidTransitionError,
    apply_deployment,
    apply_performance_tick,
    apply_publication,
    apply_stop,
    deployment_payload,
    prepare_saved_draft,
    prepare_subscription,
)
from app.schemas.strategy import OperationResult, StrategyResult, UserProfile, WalletState
from app.storage.kv_store import KeyValueStore
from app.strategy_builder.composer import StrategyComposer
from app.utils.logger import get_logger
from app.utils.time_utils import get_utc_now

logger = get_logger("services.strategy")

STRATEGY_NOT_FOUND = "Strategy not found"
PERSIST_FAILED = "Failed to persist strategies"


class StrategyService:
    """
    Service for managing the strategy lifecycle.

    PURPOSE: Apply lifecycle transitions, call the chain backend and persist
    the resulting collections. Constructed once per application and injected
    into the API routes.

    Attributes:
        _store: Key-value persistence backend.
        _chain: Chain deployment backend.
        _composer: Strategy composer for free-form input.
        _rng: Random source for simulated performance.
        _lock: Serializes read-modify-write of persisted collections.
        _wallet_address: Connected wallet, or None.
        _profile: Profile of the connected wallet, or None.
    """

    def __init__(
        self,
        store: KeyValueStore,
        chain: ChainClient,
        composer: Optional[StrategyComposer] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self._store = store
        self._chain = chain
        self._composer = composer or StrategyComposer()
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()
        self._wallet_address: Optional[str] = None
        self._profile: Optional[UserProfile] = None

    # ------------------------------------------------------------------ #
    #  Persistence helpers
    # ------------------------------------------------------------------ #

    async def _load_collection(self, key: str) -> list[StrategyResult]:
        """Read a stored collection; unreadable data counts as an empty one."""
        try:
            raw = await self._store.get(key)
        except Exception as e:
            logger.warning("collection_read_failed", key=key, error=str(e))
            return []

        if not raw:
            return []

        try:
            items = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("collection_parse_failed", key=key, error=str(e))
            return []

        if not isinstance(items, list):
            logger.warning("collection_not_a_list", key=key)
            return []

        records: list[StrategyResult] = []
        for position, item in enumerate(items):
            try:
                records.append(StrategyResult.model_validate(item))
            except ValidationError as e:
                logger.warning(
                    "stored_strategy_invalid",
                    key=key,
                    position=position,
                    errors=e.error_count(),
                )
        return records

    async def _write_collection(self, key: str, records: list[StrategyResult]) -> bool:
        payload = json.dumps([r.to_storage() for r in records])
        try:
            ok = await self._store.set(key, payload)
        except Exception as e:
            logger.error("collection_write_failed", key=key, error=str(e))
            return False
        if not ok:
            logger.error("collection_write_failed", key=key, error="store rejected write")
        return bool(ok)

    @staticmethod
    def _index_of(records: list[StrategyResult], strategy_id: Optional[str]) -> Optional[int]:
        if strategy_id is None:
            return None
        for position, record in enumerate(records):
            if record.id == strategy_id:
                return position
        return None

    # ------------------------------------------------------------------ #
    #  Queries
    # ------------------------------------------------------------------ #

    def compose(self, text: str) -> StrategyResult:
        """Compose a draft strategy from free-form text. Never fails."""
        return self._composer.compose(text)

    async def list_strategies(self) -> list[StrategyResult]:
        return await self._load_collection(SAVED_STRATEGIES_KEY)

    async def list_published(self) -> list[StrategyResult]:
        return await self._load_collection(PUBLISHED_STRATEGIES_KEY)

    async def get_strategy(self, strategy_id: str) -> Optional[StrategyResult]:
        records = await self.list_strategies()
        position = self._index_of(records, strategy_id)
        return records[position] if position is not None else None

    async def find_index(self, strategy_id: str) -> Optional[int]:
        """Position of a strategy in the saved collection, for delete by id."""
        return self._index_of(await self.list_strategies(), strategy_id)

    # ------------------------------------------------------------------ #
    #  Transitions
    # ------------------------------------------------------------------ #

    async def save_draft(self, strategy: StrategyResult) -> OperationResult:
        """
        Persist a composed draft under a fresh id.

        PURPOSE: draft (no id) -> persisted draft. The connected wallet, if
        any, is recorded as creator.

        Args:
            strategy: Draft produced by compose().

        Returns:
            OperationResult: success with the saved record, or the error.
        """
        if strategy.id is not None:
            return OperationResult(success=False, error="Strategy already saved", strategy=strategy)

        try:
            draft = prepare_saved_draft(strategy, self._wallet_address)
        except InvalidTransitionError as e:
            return OperationResult(success=False, error=str(e), strategy=strategy)

        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            records.append(draft)
            if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
                return OperationResult(success=False, error=PERSIST_FAILED, strategy=strategy)

        logger.info("strategy_saved", strategy_id=draft.id, creator=draft.creator)
        return OperationResult(success=True, strategy=draft)

    async def deploy(self, strategy: StrategyResult) -> OperationResult:
        """
        Deploy a strategy through the chain backend.

        PURPOSE: draft -> active. The record is left untouched on any failure.

        CALLED BY: POST /api/strategies/deploy

        Args:
            strategy: Composed draft or persisted draft.

        Returns:
            OperationResult: success with tx_hash and the active record, or
            the error reported by the backend.
        """
        return await self._deploy(strategy, enroll_only=False)

    @staticmethod
    def _transition_error(
        strategy: StrategyResult,
        persisted: Optional[StrategyResult],
        enroll_only: bool,
    ) -> Optional[str]:
        """Error message if the stored record or the submitted one is not a draft."""
        target = StrategyStatus.DRAFT if enroll_only else StrategyStatus.ACTIVE
        for record in (persisted, strategy):
            if record is not None and record.effective_status != StrategyStatus.DRAFT:
                return str(InvalidTransitionError(record.effective_status, target))
        return None

    async def _deploy(self, strategy: StrategyResult, enroll_only: bool) -> OperationResult:
        """
        Shared deploy path; enroll_only keeps the result a draft (subscribe flow).

        A record that is already saved is checked against its stored status,
        not the status sent by the caller.
        """
        stored = await self.list_strategies()
        position = self._index_of(stored, strategy.id)
        persisted = stored[position] if position is not None else None

        error = self._transition_error(strategy, persisted, enroll_only)
        if error:
            logger.warning("deploy_rejected", strategy_id=strategy.id, error=error)
            return OperationResult(success=False, error=error, strategy=persisted or strategy)

        logger.info(
            "deploy_started",
            strategy_id=strategy.id,
            strategy_name=strategy.parameters.strategy_name,
            enroll_only=enroll_only,
        )

        try:
            result = await self._chain.deploy_strategy(deployment_payload(strategy, enroll_only))
        except Exception as e:
            logger.error("deploy_error", strategy_id=strategy.id, error=str(e))
            return OperationResult(success=False, error="Deployment failed", strategy=strategy)

        if not result.success or not result.tx_hash:
            logger.warning("deploy_failed", strategy_id=strategy.id, error=result.error)
            return OperationResult(
                success=False,
                error=result.error or "Deployment failed",
                strategy=strategy,
            )

        deployed = apply_deployment(strategy, result.tx_hash, enroll_only=enroll_only)

        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            position = self._index_of(records, strategy.id)
            if position is not None:
                # Stored status may have moved on while the chain call was running.
                error = self._transition_error(strategy, records[position], enroll_only)
                if error:
                    logger.warning("deploy_superseded", strategy_id=strategy.id, error=error)
                    return OperationResult(
                        success=False,
                        tx_hash=result.tx_hash,
                        error=error,
                        strategy=records[position],
                    )
                records[position] = deployed
            else:
                records.append(deployed)
            if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
                return OperationResult(
                    success=False,
                    tx_hash=result.tx_hash,
                    error=PERSIST_FAILED,
                    strategy=strategy,
                )

        await self._record_deployment_in_profile(deployed)

        logger.info(
            "strategy_deployed",
            strategy_id=deployed.id,
            status=deployed.effective_status.value,
            replaced=position is not None,
        )
        return OperationResult(success=True, tx_hash=result.tx_hash, strategy=deployed)

    async def subscribe(self, published_id: str) -> OperationResult:
        """
        Copy a marketplace strategy into the caller's collection as a draft.

        Args:
            published_id: Id of the strategy in the published feed.

        Returns:
            OperationResult: success with the enrolled draft, or the error.
        """
        if not self._chain.is_connected():
            return OperationResult(success=False, error="Wallet not connected")

        published = await self.list_published()
        position = self._index_of(published, published_id)
        if position is None:
            logger.warning("subscribe_source_not_found", strategy_id=published_id)
            return OperationResult(success=False, error=STRATEGY_NOT_FOUND)

        copy = prepare_subscription(published[position])
        logger.info("strategy_subscribing", source_id=published_id, draft_id=copy.id)
        return await self._deploy(copy, enroll_only=True)

    async def stop(self, strategy_id: str) -> OperationResult:
        """
        Stop an active strategy. Stopped is terminal.

        Args:
            strategy_id: Id of the active strategy.

        Returns:
            OperationResult: success with the stopped record, "Strategy not
            found", a transition error, or the backend's error.
        """
        current = await self.get_strategy(strategy_id)
        if current is None:
            logger.warning("stop_strategy_not_found", strategy_id=strategy_id)
            return OperationResult(success=False, error=STRATEGY_NOT_FOUND)
        if current.status != StrategyStatus.ACTIVE:
            return OperationResult(success=False, error="Strategy is not active", strategy=current)

        try:
            result = await self._chain.stop_strategy(strategy_id)
        except Exception as e:
            logger.error("stop_strategy_error", strategy_id=strategy_id, error=str(e))
            return OperationResult(success=False, error="Failed to stop strategy", strategy=current)

        if not result.success:
            logger.warning("stop_strategy_failed", strategy_id=strategy_id, error=result.error)
            return OperationResult(
                success=False,
                error=result.error or "Failed to stop strategy",
                strategy=current,
            )

        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            position = self._index_of(records, strategy_id)
            if position is None:
                return OperationResult(success=False, tx_hash=result.tx_hash, error=STRATEGY_NOT_FOUND)
            try:
                stopped = apply_stop(records[position])
            except InvalidTransitionError as e:
                return OperationResult(success=False, tx_hash=result.tx_hash, error=str(e))
            records[position] = stopped
            if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
                return OperationResult(
                    success=False,
                    tx_hash=result.tx_hash,
                    error=PERSIST_FAILED,
                    strategy=current,
                )

        logger.info("strategy_stopped", strategy_id=strategy_id, tx_hash=result.tx_hash)
        return OperationResult(success=True, tx_hash=result.tx_hash, strategy=stopped)

    async def publish(self, strategy_id: str) -> OperationResult:
        """
        Publish a saved strategy to the marketplace feed.

        The saved record gets publication metadata (subscribers reset to 0)
        and a copy goes to "publishedStrategies". Publishing again replaces the
        existing feed entry instead of adding a second one. Either both
        collections are updated or neither is.

        Args:
            strategy_id: Id of a saved strategy.

        Returns:
            OperationResult: success with the published record, or the error.
        """
        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            position = self._index_of(records, strategy_id)
            if position is None:
                logger.warning("publish_strategy_not_found", strategy_id=strategy_id)
                return OperationResult(success=False, error=STRATEGY_NOT_FOUND)

            published = apply_publication(records[position], self._wallet_address)

            # Feed first: a failed feed write leaves the saved record unpublished.
            feed = await self._load_collection(PUBLISHED_STRATEGIES_KEY)
            previous_feed = list(feed)
            feed_position = self._index_of(feed, strategy_id)
            if feed_position is None:
                feed.append(published)
            else:
                feed[feed_position] = published
            if not await self._write_collection(PUBLISHED_STRATEGIES_KEY, feed):
                logger.error("published_feed_write_failed", strategy_id=strategy_id)
                return OperationResult(success=False, error=PERSIST_FAILED, strategy=records[position])

            original = records[position]
            records[position] = published
            if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
                if not await self._write_collection(PUBLISHED_STRATEGIES_KEY, previous_feed):
                    logger.error("published_feed_rollback_failed", strategy_id=strategy_id)
                return OperationResult(success=False, error=PERSIST_FAILED, strategy=original)

        logger.info("strategy_published", strategy_id=strategy_id, creator=published.creator)
        return OperationResult(success=True, strategy=published)

    async def refresh_performance(self, strategy_id: str) -> Optional[StrategyResult]:
        """
        Recompute the simulated performance of an active strategy.

        No-op for any other status; never raises. A failed write is logged and
        the stored record is returned unchanged.

        Args:
            strategy_id: Id of the strategy to refresh.

        Returns:
            The record after the refresh (unchanged for a no-op), or None if
            the id is unknown.
        """
        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            position = self._index_of(records, strategy_id)
            if position is None:
                return None

            current = records[position]
            refreshed = apply_performance_tick(current, self._rng)
            if refreshed is current:
                logger.debug(
                    "refresh_skipped",
                    strategy_id=strategy_id,
                    status=current.effective_status.value,
                )
                return current

            records[position] = refreshed
            if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
                logger.error("refresh_persist_failed", strategy_id=strategy_id)
                return current

        logger.info(
            "strategy_performance_refreshed",
            strategy_id=strategy_id,
            roi=round(refreshed.performance.roi, 2),
            trade_count=refreshed.performance.trade_count,
        )
        return refreshed

    async def delete(self, index: int) -> Optional[StrategyResult]:
        """
        Remove the strategy at `index` from the saved collection.

        Active strategies are removed as-is; nothing is stopped on the chain.

        Returns:
            The removed record, or None when the index is out of range or the
            write failed.
        """
        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            result = await self._remove_at(records, index)
        return result.strategy if result.success else None

    async def delete_by_id(self, strategy_id: str) -> OperationResult:
        """
        Remove a strategy by id, resolving its position under the same lock
        as the removal.

        Returns:
            OperationResult: success with the removed record, "Strategy not
            found", or the persistence error.
        """
        async with self._lock:
            records = await self._load_collection(SAVED_STRATEGIES_KEY)
            position = self._index_of(records, strategy_id)
            if position is None:
                logger.warning("delete_strategy_not_found", strategy_id=strategy_id)
                return OperationResult(success=False, error=STRATEGY_NOT_FOUND)
            return await self._remove_at(records, position)

    async def _remove_at(self, records: list[StrategyResult], index: int) -> OperationResult:
        """Pop and persist; the caller holds the lock."""
        if not 0 <= index < len(records):
            logger.warning("delete_index_out_of_range", index=index, size=len(records))
            return OperationResult(success=False, error=STRATEGY_NOT_FOUND)

        removed = records.pop(index)
        if not await self._write_collection(SAVED_STRATEGIES_KEY, records):
            logger.error("strategy_delete_persist_failed", strategy_id=removed.id)
            return OperationResult(success=False, error=PERSIST_FAILED, strategy=removed)

        if removed.status == StrategyStatus.ACTIVE:
            logger.warning("active_strategy_deleted", strategy_id=removed.id)
        logger.info("strategy_deleted", strategy_id=removed.id, index=index)
        return OperationResult(success=True, strategy=removed)

    # ------------------------------------------------------------------ #
    #  Wallet and user profile
    # ------------------------------------------------------------------ #

    @property
    def wallet_address(self) -> Optional[str]:
        return self._wallet_address

    def wallet_state(self) -> WalletState:
        return WalletState(
            is_connected=self._wallet_address is not None,
            address=self._wallet_address,
            profile=self._profile,
        )

    async def restore_wallet(self) -> None:
        """Pick up a wallet the chain backend already holds, e.g. after restart."""
        if self._chain.is_connected():
            await self._adopt_wallet()

    async def connect_wallet(self) -> bool:
        """
        Connect a wallet through the chain backend and load its profile.

        Returns:
            bool: True when a wallet is connected afterwards.
        """
        try:
            connected = await self._chain.connect_wallet()
        except Exception as e:
            logger.error("wallet_connect_failed", error=str(e))
            return False

        if connected:
            await self._adopt_wallet()
        return connected

    async def disconnect_wallet(self) -> None:
        try:
            await self._chain.disconnect_wallet()
        except Exception as e:
            logger.error("wallet_disconnect_failed", error=str(e))
        self._wallet_address = None
        self._profile = None

    async def _adopt_wallet(self) -> None:
        address = await self._chain.get_wallet_address()
        self._wallet_address = address
        if address:
            await self.load_user_profile(address)

    async def load_user_profile(self, address: str) -> Optional[UserProfile]:
        """
        Load the profile stored for `address`, creating it on first use.

        last_active is refreshed and written back either way.
        """
        key = f"{USER_PROFILE_KEY_PREFIX}{address}"
        now = get_utc_now()
        profile: Optional[UserProfile] = None

        try:
            raw = await self._store.get(key)
            if raw:
                profile = UserProfile.model_validate_json(raw)
        except (ValidationError, ValueError) as e:
            logger.warning("user_profile_unreadable", address=address, error=str(e))
        except Exception as e:
            logger.error("user_profile_load_failed", address=address, error=str(e))
            return None

        if profile is None:
            profile = UserProfile(wallet_address=address, joined_at=now, last_active=now)
            logger.info("user_profile_created", address=address)
        else:
            profile = profile.model_copy(update={"last_active": now})

        self._profile = profile
        await self._write_profile(profile)
        return profile

    async def update_user_profile(self, **updates: Any) -> Optional[UserProfile]:
        """Apply counter updates to the connected wallet's profile."""
        if self._profile is None or self._wallet_address is None:
            return None
        profile = self._profile.model_copy(update={**updates, "last_active": get_utc_now()})
        self._profile = profile
        await self._write_profile(profile)
        return profile

    async def _write_profile(self, profile: UserProfile) -> None:
        key = f"{USER_PROFILE_KEY_PREFIX}{profile.wallet_address}"
        try:
            await self._store.set(key, profile.model_dump_json(by_alias=True))
        except Exception as e:
            logger.error("user_profile_write_failed", address=profile.wallet_address, error=str(e))

    async def _record_deployment_in_profile(self, deployed: StrategyResult) -> None:
        if self._profile is None:
            return
        active_bump = 1 if deployed.status == StrategyStatus.ACTIVE else 0
        await self.update_user_profile(
            total_strategies=self._profile.total_strategies + 1,
            active_strategies=self._profile.active_strategies + active_bump,
        )
