"""
Dashboard Database Models

The dashboard database (fleet.db) stores:
- Persisted dashboard sessions (state per dashboard instance)
- Opaque configuration records (live dashboard location, audit channel)
- Audit log of mutating operations
"""

from sqlalchemy import Column, Integer, String, Enum, DateTime, Text
from sqlalchemy.orm import declarative_base
from datetime import datetime
import enum

Base = declarative_base()


# ============================================================================
# ENUM DEFINITIONS
# ============================================================================

class AuditSeverity(str, enum.Enum):
    """Audit entry style, mirrors the chat button styles"""
    PRIMARY = "primary"
    SECONDARY = "secondary"
    SUCCESS = "success"
    DANGER = "danger"


# ============================================================================
# MODEL DEFINITIONS
# ============================================================================

class DashboardSession(Base):
    """Last known state of one dashboard instance"""
    __tablename__ = "dashboard_sessions"

    instance_id = Column(String, primary_key=True)
    selected_server_id = Column(String, nullable=True)
    server_views_json = Column(Text, nullable=False, default="{}")
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class FleetConfig(Base):
    """Key/value configuration records"""
    __tablename__ = "fleet_config"

    key = Column(String, primary_key=True)
    value = Column(String, nullable=False)
    description = Column(String)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class AuditLog(Base):
    """Audit trail for user actions"""
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True)
    description = Column(Text, nullable=False)
    severity = Column(Enum(AuditSeverity), nullable=False, default=AuditSeverity.PRIMARY)
    actor_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
