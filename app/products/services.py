# python imports
import logging
from typing import Dict, Iterable, List, Tuple

# package imports
from sqlalchemy import or_, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import joinedload, selectinload

# project imports
from app.libs.session import session_scope
from app.libs.errors import SearchFailedError
from app.libs.text import escape_like
from app.categories.models import ProductCategory, ProductTag, Tag
from app.search.constants import SortMode
from app.search.query import SearchFilters
from app.users.models import Seller

# app imports
from .models import Product


logger = logging.getLogger(__name__)


class ProductLookupService:
    """Read-only catalog queries consumed by discovery"""

    @staticmethod
    def _base_query(session, eligible_seller_ids: Iterable[int]):
        return session.query(Product).filter(
            Product.status == Product.Status.ACTIVE,
            Product.seller_id.in_(list(eligible_seller_ids)),
        )

    @staticmethod
    def lookup_items(
        eligible_seller_ids: Iterable[int],
        text: str,
        filters: SearchFilters,
        sort: SortMode,
        skip: int,
        limit: int,
    ) -> Tuple[List[Product], int]:
        """
        Active products of eligible sellers whose name, description or a tag
        contains `text` (case-insensitive), narrowed by `filters`.

        Returns one page of products and the total number of matches.
        """
        try:
            with session_scope() as session:
                pattern = f"%{escape_like(text)}%"
                query = ProductLookupService._base_query(
                    session, eligible_seller_ids
                ).filter(
                    or_(
                        Product.name.ilike(pattern, escape="\\"),
                        Product.description.ilike(pattern, escape="\\"),
                        Product.tags.any(
                            ProductTag.tag.has(Tag.name.ilike(pattern, escape="\\"))
                        ),
                    )
                )

                if filters.category_id is not None:
                    query = query.filter(
                        Product.categories.any(
                            ProductCategory.category_id == filters.category_id
                        )
                    )

                if filters.price_min is not None:
                    query = query.filter(Product.price >= filters.price_min)

                if filters.price_max is not None:
                    query = query.filter(Product.price <= filters.price_max)

                if filters.promo_only:
                    query = query.filter(Product.on_promo.is_(True))

                total = query.order_by(None).count()

                # relevance has no scoring of its own and ranks newest-first
                sort_map = {
                    SortMode.PRICE_ASC: (Product.price.asc(), Product.id.asc()),
                    SortMode.PRICE_DESC: (Product.price.desc(), Product.id.asc()),
                    SortMode.RECENT: (Product.created_at.desc(), Product.id.desc()),
                    SortMode.RELEVANCE: (Product.created_at.desc(), Product.id.desc()),
                }

                items = (
                    query.options(
                        joinedload(Product.seller).joinedload(Seller.user),
                        selectinload(Product.categories).joinedload(
                            ProductCategory.category
                        ),
                    )
                    .order_by(*sort_map[sort])
                    .offset(skip)
                    .limit(limit)
                    .all()
                )
                return items, total
        except SQLAlchemyError as e:
            logger.error(f"Database error searching products for {text!r}: {str(e)}")
            raise SearchFailedError("Failed to search products")

    @staticmethod
    def items_with_name_prefix(
        eligible_seller_ids: Iterable[int], prefix: str, limit: int
    ) -> List[Product]:
        """Active products of eligible sellers whose name starts with `prefix`"""
        try:
            with session_scope() as session:
                return (
                    ProductLookupService._base_query(session, eligible_seller_ids)
                    .filter(Product.name.ilike(f"{escape_like(prefix)}%", escape="\\"))
                    .order_by(Product.created_at.desc(), Product.id.desc())
                    .limit(limit)
                    .all()
                )
        except SQLAlchemyError as e:
            logger.error(f"Database error fetching product suggestions: {str(e)}")
            raise SearchFailedError("Failed to fetch product suggestions")

    @staticmethod
    def count_active_by_seller(seller_ids: Iterable[int]) -> Dict[int, int]:
        """Number of active products per seller, as a grouping query"""
        seller_ids = list(seller_ids)
        if not seller_ids:
            return {}

        try:
            with session_scope() as session:
                rows = (
                    session.query(Product.seller_id, func.count(Product.id))
                    .filter(
                        Product.seller_id.in_(seller_ids),
                        Product.status == Product.Status.ACTIVE,
                    )
                    .group_by(Product.seller_id)
                    .all()
                )
                return {seller_id: count for seller_id, count in rows}
        except SQLAlchemyError as e:
            logger.error(f"Database error counting seller products: {str(e)}")
            raise SearchFailedError("Failed to count seller products")
