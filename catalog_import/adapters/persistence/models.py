"""SQLAlchemy 모델 (카탈로그 가져오기)"""
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase, relationship
from sqlalchemy.pool import StaticPool
from sqlalchemy import (
    Column, Integer, String, DateTime, Text, Boolean, Float, ForeignKey, Index, UniqueConstraint
)
from sqlalchemy.sql import func
import uuid

from catalog_import.shared.config import get_settings


def new_id() -> str:
    return uuid.uuid4().hex


# 데이터베이스 모델 베이스
class Base(DeclarativeBase):
    pass


def build_engine(database_url: str = None, echo: bool = None) -> AsyncEngine:
    """비동기 엔진 생성"""
    settings = get_settings()
    database_url = database_url or settings.database_url
    if echo is None:
        echo = settings.log_level == "DEBUG"

    if database_url.startswith("sqlite") and ":memory:" in database_url:
        # 인메모리 SQLite는 연결 하나를 공유해야 세션 간 데이터가 보인다
        return create_async_engine(
            database_url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool
        )
    return create_async_engine(database_url, echo=echo)


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """세션 팩토리 생성"""
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """테이블 생성 (SQLite 개발/테스트용)"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# 공급사 테이블
class Supplier(Base):
    __tablename__ = "suppliers"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, index=True, nullable=False)
    api_key = Column(String)
    api_endpoint = Column(String)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 카테고리 테이블
class Category(Base):
    __tablename__ = "categories"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())


# 상품 테이블
class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True, default=new_id)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True)
    description = Column(Text)

    # 가격 정보
    price = Column(Float, nullable=False)
    cost_price = Column(Float)
    compare_at_price = Column(Float)
    profit_margin = Column(Float)

    sku = Column(String)
    barcode = Column(String)
    inventory = Column(Integer, default=0)
    weight = Column(Float, default=0)
    dimensions = Column(String)
    is_published = Column(Boolean, default=False)

    category_id = Column(String, ForeignKey("categories.id"), index=True, nullable=False)
    supplier_id = Column(String, ForeignKey("suppliers.id"), index=True)
    supplier_product_id = Column(String)  # pid:<숫자>:null

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    images = relationship("ProductImage", back_populates="product", cascade="all, delete-orphan")
    variants = relationship("ProductVariant", back_populates="product", cascade="all, delete-orphan")

    __table_args__ = (
        UniqueConstraint('supplier_id', 'supplier_product_id', name='uq_products_supplier_product'),
        Index('ix_products_supplier_product', 'supplier_id', 'supplier_product_id'),
    )


# 상품 이미지 테이블
class ProductImage(Base):
    __tablename__ = "product_images"

    id = Column(String, primary_key=True, default=new_id)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    url = Column(String, nullable=False)
    position = Column(Integer, nullable=False, default=0)
    alt = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="images")


# 상품 옵션 테이블
class ProductVariant(Base):
    __tablename__ = "product_variants"

    id = Column(String, primary_key=True, default=new_id)
    product_id = Column(String, ForeignKey("products.id", ondelete="CASCADE"), index=True, nullable=False)
    name = Column(String, nullable=False)
    sku = Column(String)
    price = Column(Float, nullable=False)
    cost_price = Column(Float)
    compare_at_price = Column(Float)
    inventory = Column(Integer, default=0)
    type = Column(String)
    options = Column(Text)  # JSON array
    image = Column(String)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    product = relationship("Product", back_populates="variants")


# 관리자 작업 로그 테이블
class AdminLog(Base):
    __tablename__ = "admin_logs"

    id = Column(String, primary_key=True, default=new_id)
    action = Column(String, index=True, nullable=False)
    details = Column(Text)
    user_id = Column(String, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
