"""
Database manager for PostgreSQL operations
"""

import asyncpg
import logging
from typing import List, Dict, Optional
import json

from .models import Device, _convert_ip_address

logger = logging.getLogger(__name__)

NETWORK_MASK_KEY = 'network_mask'

class DatabaseManager:
    """Device directory and settings backed by PostgreSQL"""

    def __init__(self, config: Dict):
        self.config = config
        self.pool = None
        self.db_host = config['database']['host']
        self.db_port = config['database']['port']
        self.db_name = config['database']['database']
        self.db_user = config['database']['username']
        self.db_password = config['database']['password']

    async def initialize(self):
        """Initialize database connection pool and schema"""
        try:
            self.pool = await asyncpg.create_pool(
                host=self.db_host,
                port=self.db_port,
                database=self.db_name,
                user=self.db_user,
                password=self.db_password,
                min_size=2,
                max_size=10,
                command_timeout=10
            )

            logger.info("Database connection pool created")

            await self.create_schema()
            logger.info("Database schema initialized")

        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    async def create_schema(self):
        """Create database tables if they don't exist"""
        schema_sql = """
        CREATE TABLE IF NOT EXISTS devices (
            id TEXT PRIMARY KEY,
            vendor TEXT NOT NULL,
            name TEXT NOT NULL,
            ip_address INET NOT NULL,
            capabilities JSONB NOT NULL DEFAULT '[]'::jsonb,
            date_time_added TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
        );

        CREATE TABLE IF NOT EXISTS settings (
            key TEXT PRIMARY KEY,
            value TEXT,
            updated_at TIMESTAMPTZ DEFAULT CURRENT_TIMESTAMP
        );

        CREATE INDEX IF NOT EXISTS idx_devices_vendor ON devices(vendor);
        CREATE INDEX IF NOT EXISTS idx_devices_ip_address ON devices(ip_address);
        """

        async with self.pool.acquire() as conn:
            await conn.execute(schema_sql)

    @staticmethod
    def _row_to_device(row) -> Device:
        capabilities = row['capabilities']
        if isinstance(capabilities, str):
            capabilities = json.loads(capabilities)
        return Device(
            id=row['id'],
            vendor=row['vendor'],
            name=row['name'],
            ip_address=_convert_ip_address(row['ip_address']),
            capabilities=set(capabilities or []),
            date_time_added=row['date_time_added'],
        )

    async def get_device(self, device_id: str) -> Optional[Device]:
        """Device by id, None when unknown"""
        try:
            async with self.pool.acquire() as conn:
                row = await conn.fetchrow("""
                    SELECT id, vendor, name, ip_address, capabilities, date_time_added
                    FROM devices WHERE id = $1
                """, device_id)
                return self._row_to_device(row) if row else None
        except Exception as e:
            logger.error(f"Failed to get device {device_id}: {e}")
            raise

    async def list_devices(self) -> List[Device]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch("""
                    SELECT id, vendor, name, ip_address, capabilities, date_time_added
                    FROM devices ORDER BY date_time_added, name
                """)
                return [self._row_to_device(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list devices: {e}")
            raise

    async def get_devices_by_vendor(self, vendor: str) -> List[Device]:
        try:
            async with self.pool.acquire() as conn:
                rows = await conn.fetch("""
                    SELECT id, vendor, name, ip_address, capabilities, date_time_added
                    FROM devices WHERE lower(vendor) = lower($1) ORDER BY name
                """, vendor)
                return [self._row_to_device(row) for row in rows]
        except Exception as e:
            logger.error(f"Failed to list devices for vendor {vendor}: {e}")
            raise

    async def add_device(self, device: Device) -> Device:
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO devices (id, vendor, name, ip_address, capabilities, date_time_added)
                    VALUES ($1, $2, $3, $4, $5, $6)
                """,
                device.id, device.vendor, device.name, device.ip_address,
                json.dumps(sorted(device.capabilities)), device.date_time_added
                )
            return device
        except Exception as e:
            logger.error(f"Failed to add device {device.id}: {e}")
            raise

    async def update_device(self, device: Device) -> Device:
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute("""
                    UPDATE devices SET
                        vendor = $2,
                        name = $3,
                        ip_address = $4,
                        capabilities = $5
                    WHERE id = $1
                """,
                device.id, device.vendor, device.name, device.ip_address,
                json.dumps(sorted(device.capabilities))
                )
            if result.split()[-1] == '0':
                logger.warning(f"Update matched no device with id {device.id}")
            return device
        except Exception as e:
            logger.error(f"Failed to update device {device.id}: {e}")
            raise

    async def remove_device(self, device_id: str) -> bool:
        try:
            async with self.pool.acquire() as conn:
                result = await conn.execute("DELETE FROM devices WHERE id = $1", device_id)
            success = result.split()[-1] != '0'
            if success:
                logger.info(f"Removed device {device_id}")
            return success
        except Exception as e:
            logger.error(f"Failed to remove device {device_id}: {e}")
            raise

    async def get_network_mask(self) -> Optional[str]:
        try:
            async with self.pool.acquire() as conn:
                return await conn.fetchval("SELECT value FROM settings WHERE key = $1", NETWORK_MASK_KEY)
        except Exception as e:
            logger.error(f"Failed to get network mask: {e}")
            raise

    async def set_network_mask(self, network_mask: str):
        try:
            async with self.pool.acquire() as conn:
                await conn.execute("""
                    INSERT INTO settings (key, value, updated_at)
                    VALUES ($1, $2, CURRENT_TIMESTAMP)
                    ON CONFLICT (key) DO UPDATE SET
                        value = $2,
                        updated_at = CURRENT_TIMESTAMP
                """, NETWORK_MASK_KEY, network_mask)
            logger.info(f"Network mask set to {network_mask}")
        except Exception as e:
            logger.error(f"Failed to set network mask: {e}")
            raise

    async def close(self):
        """Close database connection pool"""
        if self.pool:
            await self.pool.close()
            logger.info("Database connection pool closed")
