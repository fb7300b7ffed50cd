"""Order persistence using Supabase PostgreSQL."""
import logging
from datetime import datetime, timezone
from typing import List, Optional
from supabase import acreate_client, AsyncClient

from models.order import OrderRecord
from config import SUPABASE_URL, SUPABASE_KEY, SUPABASE_TABLE_NAME

logger = logging.getLogger(__name__)


class OrderStoreError(Exception):
    """Raised when a datastore read fails."""


class OrderStore:
    """
    Stores and retrieves orders in a Supabase table keyed by site.

    Missing credentials disable the store instead of failing startup: writes
    return False and reads raise OrderStoreError.
    """

    def __init__(
        self,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY,
        table_name: str = SUPABASE_TABLE_NAME
    ):
        """
        Configure the order store. Call connect() before use.

        Args:
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            table_name: Name of the orders table
        """
        self.supabase_url = supabase_url
        self.supabase_key = supabase_key
        self.table_name = table_name
        self.enabled = bool(supabase_url and supabase_key)
        self.client: Optional[AsyncClient] = None

        if not self.enabled:
            logger.warning("SUPABASE_URL or SUPABASE_KEY missing; orders will not be saved")

    async def connect(self) -> None:
        """Create the async Supabase client."""
        if not self.enabled or self.client is not None:
            return

        self.client = await acreate_client(self.supabase_url, self.supabase_key)
        logger.info(f"OrderStore connected to table: {self.table_name}")

    @property
    def available(self) -> bool:
        return self.enabled and self.client is not None

    async def persist_order(self, order: OrderRecord) -> bool:
        """
        Insert an order.

        Args:
            order: Validated order record

        Returns:
            True if the row was stored, False otherwise (never raises)
        """
        if not self.available:
            logger.warning(f"OrderStore unavailable, skipping order for site {order.site}")
            return False

        row = order.to_row()
        row["created_at"] = datetime.now(timezone.utc).isoformat()

        try:
            result = await self.client.table(self.table_name).insert(row).execute()
        except Exception as e:
            logger.error(f"Failed to store order for site {order.site}: {e}", exc_info=True)
            return False

        if not result.data:
            logger.error(f"Order insert for site {order.site} returned no rows")
            return False

        order.id = result.data[0].get("id")
        order.created_at = result.data[0].get("created_at", row["created_at"])
        logger.info(
            f"Stored order {order.id} for site {order.site}",
            extra={"sender": order.sender, "materials": len(order.materials), "status": order.status}
        )
        return True

    async def fetch_orders_by_site(self, site: str) -> List[OrderRecord]:
        """
        Get all orders for a site, newest first.

        Raises:
            ValueError: If site is empty
            OrderStoreError: If the store is unavailable or the query fails
        """
        if not site or not site.strip():
            raise ValueError("Site cannot be empty")
        if not self.available:
            raise OrderStoreError("Order store is not available")

        try:
            result = await (
                self.client.table(self.table_name)
                .select("*")
                .eq("site", site.strip())
                .order("created_at", desc=True)
                .execute()
            )
        except Exception as e:
            logger.error(f"Failed to fetch orders for site {site}: {e}", exc_info=True)
            raise OrderStoreError(f"Failed to fetch orders for site {site}") from e

        return [OrderRecord.from_row(row) for row in result.data or []]

    async def list_sites(self) -> List[str]:
        """
        Get the distinct site names that have orders.

        Raises:
            OrderStoreError: If the store is unavailable or the query fails
        """
        if not self.available:
            raise OrderStoreError("Order store is not available")

        try:
            result = await self.client.table(self.table_name).select("site").execute()
        except Exception as e:
            logger.error(f"Failed to list sites: {e}", exc_info=True)
            raise OrderStoreError("Failed to list sites") from e

        return sorted({row["site"] for row in result.data or [] if row.get("site")})

    async def test_connection(self) -> bool:
        """Run a trivial query to check the table is reachable."""
        if not self.available:
            return False

        try:
            await self.client.table(self.table_name).select("id").limit(1).execute()
            return True
        except Exception as e:
            logger.warning(f"Supabase connection test failed: {e}")
            return False
