from datetime import datetime
from enum import Enum

from sqlalchemy import and_, desc, event, func, or_

from external.database import db
from app.libs.text import escape_like, normalize_query

from .constants import MAX_QUERY_LENGTH, SearchType


class DeleteOutcome(Enum):
    DELETED = "deleted"
    NOT_FOUND = "not_found"
    NOT_OWNER = "not_owner"


class SearchHistory(db.Model):
    """
    One executed search.

    Rows are written once and never updated. Rows without a user are purged
    after the retention window by `purge_anonymous`; rows with a user live
    until that user deletes them.
    """

    __tablename__ = "search_history"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.String(12), db.ForeignKey("users.id"), nullable=True, index=True
    )
    query_text = db.Column("query", db.String(MAX_QUERY_LENGTH), nullable=False)
    query_normalized = db.Column(db.String(MAX_QUERY_LENGTH), nullable=False, index=True)
    search_type = db.Column(
        db.Enum(SearchType, name="search_history_type"),
        default=SearchType.ALL,
        nullable=False,
    )

    # Filters applied
    filter_category_id = db.Column(db.Integer)
    filter_price_min = db.Column(db.Float)
    filter_price_max = db.Column(db.Float)
    filter_promo_only = db.Column(db.Boolean)

    # Results obtained
    items_found = db.Column(db.Integer, default=0, nullable=False)
    vendors_found = db.Column(db.Integer, default=0, nullable=False)

    # Client metadata
    ip_address = db.Column(db.String(45))
    user_agent = db.Column(db.String(255))

    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    __table_args__ = (
        db.Index("idx_search_history_user_created", "user_id", "created_at"),
        db.Index("idx_search_history_key_created", "query_normalized", "created_at"),
    )

    user = db.relationship("User", back_populates="search_history")

    def __repr__(self):
        return f"<SearchHistory {self.id} {self.query_text!r} user={self.user_id}>"

    @property
    def filters(self):
        return {
            "category_id": self.filter_category_id,
            "price_min": self.filter_price_min,
            "price_max": self.filter_price_max,
            "promo_only": self.filter_promo_only,
        }

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @classmethod
    def record(cls, session, **data):
        """Append an entry; the normalized key is always derived from `query_text`"""
        data.pop("query_normalized", None)
        entry = cls(**data)
        session.add(entry)
        session.flush()
        return entry

    @classmethod
    def delete_for_user(cls, session, user_id):
        return (
            session.query(cls)
            .filter(cls.user_id == user_id)
            .delete(synchronize_session=False)
        )

    @classmethod
    def delete_entry(cls, session, entry_id, user_id):
        deleted = (
            session.query(cls)
            .filter(cls.id == entry_id, cls.user_id == user_id)
            .delete(synchronize_session=False)
        )
        if deleted:
            return DeleteOutcome.DELETED

        exists = session.query(cls.id).filter(cls.id == entry_id).first()
        return DeleteOutcome.NOT_OWNER if exists else DeleteOutcome.NOT_FOUND

    @classmethod
    def purge_anonymous(cls, session, cutoff):
        """Delete anonymous entries created before `cutoff`. Safe to repeat."""
        return (
            session.query(cls)
            .filter(cls.user_id.is_(None), cls.created_at < cutoff)
            .delete(synchronize_session=False)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @classmethod
    def for_user(cls, session, user_id):
        return (
            session.query(cls)
            .filter(cls.user_id == user_id)
            .order_by(cls.created_at.desc(), cls.id.desc())
        )

    @classmethod
    def recent_unique(cls, session, user_id, limit):
        groups = (
            session.query(
                cls.query_normalized.label("norm_key"),
                func.max(cls.created_at).label("last_seen"),
            )
            .filter(cls.user_id == user_id)
            .group_by(cls.query_normalized)
            .order_by(desc("last_seen"))
            .limit(limit)
            .all()
        )
        latest = cls._latest_by_key(session, groups, cls.user_id == user_id)
        return [latest[g.norm_key] for g in groups if g.norm_key in latest]

    @classmethod
    def popular_with_prefix(cls, session, prefix, limit):
        key = normalize_query(prefix)
        if not key:
            return []

        filters = (
            cls.query_normalized.like(f"{escape_like(key)}%", escape="\\"),
            cls.items_found > 0,
        )
        groups = (
            session.query(
                cls.query_normalized.label("norm_key"),
                func.count(cls.id).label("occurrences"),
                func.avg(cls.items_found + cls.vendors_found).label("avg_results"),
                func.max(cls.created_at).label("last_seen"),
            )
            .filter(*filters)
            .group_by(cls.query_normalized)
            .order_by(desc("occurrences"), desc("avg_results"), desc("last_seen"))
            .limit(limit)
            .all()
        )
        return cls._with_display_text(session, groups, filters)

    @classmethod
    def trending(cls, session, since, limit):
        filters = (cls.created_at >= since, cls.items_found > 0)
        groups = (
            session.query(
                cls.query_normalized.label("norm_key"),
                func.count(cls.id).label("occurrences"),
                func.max(cls.created_at).label("last_seen"),
            )
            .filter(*filters)
            .group_by(cls.query_normalized)
            .order_by(desc("occurrences"), desc("last_seen"))
            .limit(limit)
            .all()
        )
        return cls._with_display_text(session, groups, filters)

    @classmethod
    def _with_display_text(cls, session, groups, filters):
        latest = cls._latest_by_key(session, groups, *filters)
        return [
            {
                "query": (
                    latest[g.norm_key].query_text
                    if g.norm_key in latest
                    else g.norm_key
                ),
                "query_normalized": g.norm_key,
                "count": g.occurrences,
            }
            for g in groups
        ]

    @classmethod
    def _latest_by_key(cls, session, groups, *filters):
        """Map each grouped key to the row holding its most recent occurrence"""
        if not groups:
            return {}

        pairs = [
            and_(cls.query_normalized == g.norm_key, cls.created_at == g.last_seen)
            for g in groups
        ]
        rows = (
            session.query(cls)
            .filter(or_(*pairs), *filters)
            .order_by(cls.created_at.desc(), cls.id.desc())
            .all()
        )

        latest = {}
        for row in rows:
            latest.setdefault(row.query_normalized, row)
        return latest


@event.listens_for(SearchHistory, "before_insert")
def _derive_normalized_query(mapper, connection, target):
    target.query_text = (target.query_text or "").strip()[:MAX_QUERY_LENGTH]
    target.query_normalized = normalize_query(target.query_text)


@event.listens_for(SearchHistory, "before_update")
def _reject_update(mapper, connection, target):
    raise ValueError("Search history entries are immutable")
