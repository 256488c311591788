# python imports
import logging
from typing import Iterable, List, Set, Tuple

# package imports
from sqlalchemy import case, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload

# projects imports
from app.libs.session import session_scope
from app.libs.errors import SearchFailedError
from app.libs.text import escape_like

# app imports
from .models import User, Seller, SellerVerificationStatus

logger = logging.getLogger(__name__)


class ShopLookupService:
    """Read-only shop queries consumed by discovery"""

    @staticmethod
    def _average_rating():
        return case(
            (Seller.total_raters > 0, Seller.total_rating * 1.0 / Seller.total_raters),
            else_=0,
        )

    @staticmethod
    def get_eligible_seller_ids() -> Set[int]:
        """Ids of sellers that are active, verified and owned by an active account"""
        try:
            with session_scope() as session:
                rows = (
                    session.query(Seller.id)
                    .join(User, Seller.user_id == User.id)
                    .filter(
                        Seller.is_active.is_(True),
                        Seller.verification_status == SellerVerificationStatus.VERIFIED,
                        User.account_active.is_(True),
                    )
                    .all()
                )
                return {row.id for row in rows}
        except SQLAlchemyError as e:
            logger.error(f"Database error resolving eligible sellers: {str(e)}")
            raise SearchFailedError("Failed to resolve eligible shops")

    @staticmethod
    def lookup_vendors(
        eligible_seller_ids: Iterable[int], text: str, skip: int, limit: int
    ) -> Tuple[List[Seller], int]:
        """
        Eligible shops whose name, description or category contains `text`
        (case-insensitive), best rated first.

        Returns one page of sellers and the total number of matches.
        """
        try:
            with session_scope() as session:
                pattern = f"%{escape_like(text)}%"
                query = session.query(Seller).filter(
                    Seller.id.in_(list(eligible_seller_ids)),
                    or_(
                        Seller.shop_name.ilike(pattern, escape="\\"),
                        Seller.description.ilike(pattern, escape="\\"),
                        Seller.category.ilike(pattern, escape="\\"),
                    ),
                )

                total = query.count()
                shops = (
                    query.options(joinedload(Seller.user))
                    .order_by(ShopLookupService._average_rating().desc(), Seller.id.asc())
                    .offset(skip)
                    .limit(limit)
                    .all()
                )
                return shops, total
        except SQLAlchemyError as e:
            logger.error(f"Shop search failed for {text!r}: {str(e)}")
            raise SearchFailedError("Failed to search shops")

    @staticmethod
    def vendors_with_name_prefix(
        eligible_seller_ids: Iterable[int], prefix: str, limit: int
    ) -> List[Seller]:
        """Eligible shops whose name starts with `prefix`"""
        try:
            with session_scope() as session:
                return (
                    session.query(Seller)
                    .options(joinedload(Seller.user))
                    .filter(
                        Seller.id.in_(list(eligible_seller_ids)),
                        Seller.shop_name.ilike(f"{escape_like(prefix)}%", escape="\\"),
                    )
                    .order_by(ShopLookupService._average_rating().desc(), Seller.id.asc())
                    .limit(limit)
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching shop suggestions: {str(e)}")
            raise SearchFailedError("Failed to fetch shop suggestions")
