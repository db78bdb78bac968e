"""
Pytest configuration: in-memory database and model factories.
"""
from datetime import date, time

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app import models  # noqa: F401  registers tables
from app.database import Base
from app.models import Campaign, Product, Store, User
from app.services.claude_service import GeneratedArticle

SECTION_TEXT = (
    "Velvet sofas bring warmth and comfort to a living room while staying easy "
    "to care for when you pick the right fabric and a sturdy frame. "
)


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def user(db):
    user = User(email="owner@example.com", full_name="Store Owner")
    db.add(user)
    db.commit()
    return user


@pytest.fixture
def store(db, user):
    store = Store(
        user_id=user.id,
        name="Maison Velours",
        shop_domain="maison-velours.myshopify.com",
        storefront_url="https://maison-velours.com/",
        blog_id="1001",
    )
    db.add(store)
    db.commit()
    return store


@pytest.fixture
def make_campaign(db, store):
    """Factory for campaigns with small, valid content targets."""

    def _make(**overrides):
        fields = dict(
            store_id=store.id,
            name="Living room guides",
            topic_niche="velvet living room furniture",
            status="active",
            frequency="weekly",
            schedule_time=time(9, 0),
            schedule_day=1,
            timezone="UTC",
            start_date=date(2025, 1, 6),
            word_count_min=100,
            word_count_max=400,
            keywords=["sofa", "velvet"],
            language="en",
            max_internal_links=2,
            auto_publish=False,
        )
        fields.update(overrides)
        campaign = Campaign(**fields)
        db.add(campaign)
        db.commit()
        return campaign

    return _make


@pytest.fixture
def make_product(db, store):
    """Factory for catalog products."""
    counter = {"position": 0}

    def _make(title, **overrides):
        counter["position"] += 1
        fields = dict(
            store_id=store.id,
            title=title,
            handle=title.lower().replace(" ", "-"),
            status="active",
            position=counter["position"],
        )
        fields.update(overrides)
        product = Product(**fields)
        db.add(product)
        db.commit()
        return product

    return _make


def article_html(sections=2, with_card=True, title="Choosing a velvet sofa"):
    """Generated-article body with tokens, as the model returns it."""
    parts = [f"<h1>{title}</h1>"]
    for index in range(1, sections + 1):
        parts.append(f'<h2 id="section-{index}">Section {index}</h2>')
        parts.append(f"<p>{SECTION_TEXT * 3}</p>")
    if with_card:
        parts.append(
            '<div class="product-card" data-product-id="{{PRODUCT_ID_1}}">'
            '<h3><a href="{{PRODUCT_URL_1}}">{{PRODUCT_TITLE_1}}</a></h3>'
            "<p>A deep seat for long evenings.</p></div>"
        )
    return "".join(parts)


class FakeGenerator:
    """Stands in for ClaudeService.generate_article."""

    def __init__(self, content=None, error=None):
        self.content = content if content is not None else article_html()
        self.error = error
        self.requests = []

    async def generate_article(self, request):
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        return GeneratedArticle(
            title="Choosing a velvet sofa",
            content=self.content,
            meta_description="How to pick a velvet sofa that lasts.",
            focus_keyword="velvet sofa",
            keywords=["velvet sofa"],
            category="Guides",
        )


@pytest.fixture
def fake_generator():
    return FakeGenerator()
