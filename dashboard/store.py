"""
Repositories over the dashboard database.

- SessionStore: persisted DashboardState per dashboard instance
- ConfigStore: opaque key/value records (live dashboard, audit channel)
- AuditLogStore: audit trail rows
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import delete, select

from dashboard.models import AuditLog, AuditSeverity, DashboardSession, FleetConfig
from dashboard.state import DashboardState

logger = logging.getLogger(__name__)

DASHBOARD_GUILD_KEY = "dashboard.guild_id"
DASHBOARD_CHANNEL_KEY = "dashboard.channel_id"
DASHBOARD_MESSAGE_KEY = "dashboard.message_id"
DASHBOARD_CONFIGURED_BY_KEY = "dashboard.configured_by"
AUDIT_CHANNEL_KEY = "audit.channel_id"


@dataclass(frozen=True)
class DashboardConfig:
    """Which chat message is the live dashboard"""
    guild_id: str
    channel_id: str
    message_id: str
    configured_by: Optional[str] = None

    @property
    def instance_id(self) -> str:
        return self.message_id


@dataclass(frozen=True)
class AuditConfig:
    """Which chat channel receives audit entries"""
    channel_id: str


class SessionStore:
    """Persisted dashboard sessions"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def load(self, instance_id: str) -> Optional[DashboardState]:
        db = self.session_factory()
        try:
            row = db.get(DashboardSession, instance_id)
            if row is None:
                return None
            try:
                views = json.loads(row.server_views_json or "{}")
            except json.JSONDecodeError:
                logger.warning(f"Dashboard session {instance_id} has unreadable views; ignoring them")
                views = {}
            return DashboardState.from_dict({
                "selected_server_id": row.selected_server_id,
                "server_views": views,
            })
        finally:
            db.close()

    def save(self, instance_id: str, state: DashboardState):
        payload = state.to_dict()
        db = self.session_factory()
        try:
            row = db.get(DashboardSession, instance_id)
            if row is None:
                row = DashboardSession(instance_id=instance_id)
                db.add(row)
            row.selected_server_id = payload["selected_server_id"]
            row.server_views_json = json.dumps(payload["server_views"], sort_keys=True)
            row.updated_at = datetime.utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, instance_id: str):
        db = self.session_factory()
        try:
            db.execute(delete(DashboardSession).where(DashboardSession.instance_id == instance_id))
            db.commit()
        finally:
            db.close()


class ConfigStore:
    """Key/value configuration records"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get(self, key: str) -> Optional[str]:
        db = self.session_factory()
        try:
            row = db.get(FleetConfig, key)
            return row.value if row is not None else None
        finally:
            db.close()

    def get_many(self, keys: List[str]) -> Dict[str, str]:
        db = self.session_factory()
        try:
            rows = db.scalars(select(FleetConfig).where(FleetConfig.key.in_(keys))).all()
            return {row.key: row.value for row in rows}
        finally:
            db.close()

    def set_many(self, values: Dict[str, Optional[str]], description: Optional[str] = None):
        """Upsert several keys in one transaction; None values delete the key"""
        db = self.session_factory()
        try:
            for key, value in values.items():
                row = db.get(FleetConfig, key)
                if value is None:
                    if row is not None:
                        db.delete(row)
                    continue
                if row is None:
                    row = FleetConfig(key=key, description=description)
                    db.add(row)
                row.value = value
                row.updated_at = datetime.utcnow()
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def delete(self, *keys: str):
        db = self.session_factory()
        try:
            db.execute(delete(FleetConfig).where(FleetConfig.key.in_(keys)))
            db.commit()
        finally:
            db.close()

    def load_dashboard_config(self) -> Optional[DashboardConfig]:
        values = self.get_many([
            DASHBOARD_GUILD_KEY, DASHBOARD_CHANNEL_KEY, DASHBOARD_MESSAGE_KEY, DASHBOARD_CONFIGURED_BY_KEY,
        ])
        if not values:
            return None
        if not all(values.get(key) for key in (DASHBOARD_GUILD_KEY, DASHBOARD_CHANNEL_KEY, DASHBOARD_MESSAGE_KEY)):
            logger.warning("Dashboard config is missing required fields; ignoring it.")
            return None
        return DashboardConfig(
            guild_id=values[DASHBOARD_GUILD_KEY],
            channel_id=values[DASHBOARD_CHANNEL_KEY],
            message_id=values[DASHBOARD_MESSAGE_KEY],
            configured_by=values.get(DASHBOARD_CONFIGURED_BY_KEY),
        )

    def save_dashboard_config(self, dashboard_config: DashboardConfig):
        self.set_many({
            DASHBOARD_GUILD_KEY: dashboard_config.guild_id,
            DASHBOARD_CHANNEL_KEY: dashboard_config.channel_id,
            DASHBOARD_MESSAGE_KEY: dashboard_config.message_id,
            DASHBOARD_CONFIGURED_BY_KEY: dashboard_config.configured_by,
        }, description="Live dashboard location")

    def clear_dashboard_config(self):
        self.delete(DASHBOARD_GUILD_KEY, DASHBOARD_CHANNEL_KEY, DASHBOARD_MESSAGE_KEY, DASHBOARD_CONFIGURED_BY_KEY)

    def load_audit_config(self) -> Optional[AuditConfig]:
        channel_id = self.get(AUDIT_CHANNEL_KEY)
        return AuditConfig(channel_id=channel_id) if channel_id else None

    def save_audit_config(self, audit_config: AuditConfig):
        self.set_many({AUDIT_CHANNEL_KEY: audit_config.channel_id}, description="Audit log channel")


class AuditLogStore:
    """Audit trail rows, newest first on read"""

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def record(self, event):
        db = self.session_factory()
        try:
            db.add(AuditLog(
                description=event.description,
                severity=AuditSeverity(event.severity),
                actor_id=event.actor_id,
            ))
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def recent(self, limit: int = 50) -> List[dict]:
        db = self.session_factory()
        try:
            rows = db.scalars(
                select(AuditLog).order_by(AuditLog.created_at.desc(), AuditLog.id.desc()).limit(limit)
            ).all()
            return [
                {
                    "id": row.id,
                    "description": row.description,
                    "severity": row.severity.value,
                    "actor_id": row.actor_id,
                    "created_at": row.created_at.isoformat() if row.created_at else None,
                }
                for row in rows
            ]
        finally:
            db.close()
