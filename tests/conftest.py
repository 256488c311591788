from datetime import datetime

import pytest
from flask import g

from external.database import db
from main.setup import create_app
from app.categories.models import Category, ProductCategory, Tag, ProductTag
from app.products.models import Product
from app.search.constants import SearchType
from app.search.models import SearchHistory
from app.search.services import history_publishers
from app.users.models import Seller, SellerVerificationStatus, User

MEDIA_BASE_URL = "https://media.markt.test"


@pytest.fixture
def app(tmp_path):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "CELERY_ALWAYS_EAGER": True,
            "MEDIA_BASE_URL": MEDIA_BASE_URL,
            "LOG_DIR": tmp_path / "logs",
            "LOG_LEVEL": "WARNING",
        }
    )
    with app.app_context():
        db.create_all()
        yield app
        history_publishers.join()
        db.session.remove()
        db.drop_all()


@pytest.fixture
def wait_for_history(app):
    """Block until background history publishes have finished"""
    return history_publishers.join


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def login(client):
    def _login(user):
        with client.session_transaction() as sess:
            sess["_user_id"] = user.id
        # the test app context outlives requests, drop the cached identity
        g.pop("_login_user", None)

    return _login


class Factory:
    """Builds committed catalog and history rows"""

    def __init__(self, session):
        self.session = session
        self._seq = 0

    def _next(self):
        self._seq += 1
        return self._seq

    def _save(self, obj):
        self.session.add(obj)
        self.session.commit()
        return obj

    def user(self, username=None, active=True, **kwargs):
        username = username or f"user{self._next()}"
        return self._save(
            User(
                email=f"{username}@markt.test",
                username=username,
                account_active=active,
                **kwargs,
            )
        )

    def seller(
        self,
        shop_name,
        verified=True,
        active=True,
        user=None,
        rating=(0, 0),
        **kwargs,
    ):
        user = user or self.user(is_seller=True)
        total_rating, total_raters = rating
        return self._save(
            Seller(
                user=user,
                shop_name=shop_name,
                shop_slug=f"{shop_name.lower().replace(' ', '-')}-{self._next()}",
                verification_status=(
                    SellerVerificationStatus.VERIFIED
                    if verified
                    else SellerVerificationStatus.PENDING
                ),
                is_active=active,
                total_rating=total_rating,
                total_raters=total_raters,
                **kwargs,
            )
        )

    def category(self, name):
        return self._save(Category(name=name, slug=name.lower()))

    def product(
        self,
        seller,
        name,
        price=10.0,
        category=None,
        tags=(),
        created_at=None,
        **kwargs,
    ):
        product = Product(
            seller=seller,
            name=name,
            slug=name.lower().replace(" ", "-"),
            price=price,
            **kwargs,
        )
        if created_at:
            product.created_at = created_at
        if category:
            product.categories.append(ProductCategory(category=category, is_primary=True))
        for tag_name in tags:
            tag = Tag.query.filter_by(name=tag_name).first() or Tag(name=tag_name)
            product.tags.append(ProductTag(tag=tag))
        return self._save(product)

    def history(
        self,
        query_text,
        user=None,
        items_found=1,
        vendors_found=0,
        created_at=None,
        search_type=SearchType.ALL,
        **kwargs,
    ):
        entry = SearchHistory.record(
            self.session,
            user_id=user.id if user else None,
            query_text=query_text,
            search_type=search_type,
            items_found=items_found,
            vendors_found=vendors_found,
            created_at=created_at or datetime.utcnow(),
            **kwargs,
        )
        self.session.commit()
        return entry


@pytest.fixture
def factory(app):
    return Factory(db.session)
