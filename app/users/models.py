from enum import Enum
from flask_login import UserMixin

from app.libs.models import BaseModel
from app.libs.helper import UniqueIdMixin
from external.database import db


class User(BaseModel, UserMixin, UniqueIdMixin):
    __tablename__ = "users"
    id_prefix = "USR_"

    id = db.Column(db.String(12), primary_key=True, default=None)
    email = db.Column(db.String(120), unique=True, nullable=False)
    username = db.Column(db.String(50), unique=True, nullable=False)
    profile_picture = db.Column(db.String(255), default="default.jpg")
    account_active = db.Column(db.Boolean, default=True)

    is_buyer = db.Column(db.Boolean, default=False)
    is_seller = db.Column(db.Boolean, default=False)

    # Relationships
    seller_account = db.relationship("Seller", uselist=False, back_populates="user")
    search_history = db.relationship(
        "SearchHistory", back_populates="user", lazy="dynamic"
    )

    @property
    def is_active(self):
        # flask-login refuses to load inactive accounts
        return bool(self.account_active)


class SellerVerificationStatus(Enum):
    UNVERIFIED = "unverified"
    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    SUSPENDED = "suspended"


class Seller(BaseModel):
    __tablename__ = "sellers"

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(12), db.ForeignKey("users.id"))
    shop_name = db.Column(db.String(100))
    shop_slug = db.Column(db.String(110), unique=True)
    description = db.Column(db.Text)
    category = db.Column(db.String(100))
    logo = db.Column(db.String(255))
    total_rating = db.Column(db.Integer, default=0)
    total_raters = db.Column(db.Integer, default=0)
    verification_status = db.Column(
        db.Enum(SellerVerificationStatus), default=SellerVerificationStatus.UNVERIFIED
    )
    is_active = db.Column(db.Boolean, default=True)
    deactivated_at = db.Column(db.DateTime)

    # Relationships
    user = db.relationship("User", back_populates="seller_account")
    products = db.relationship("Product", back_populates="seller", lazy="dynamic")

    @property
    def average_rating(self):
        if not self.total_raters:
            return 0
        return round(self.total_rating / self.total_raters, 2)
