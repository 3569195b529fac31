from collections.abc import Generator

from pytest import MonkeyPatch, fixture

mp = MonkeyPatch()
mp.setenv("PRODUCTION", "True")
mp.setenv("TESTING", "True")
from datetime import datetime

import sqlalchemy as sa
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from modmarket.app import app
from modmarket.db.db_setup import generate_session
from modmarket.db.models import SqlAlchemyBase
from modmarket.db.models.listings import ListingImageModel, ListingModel, ModificationModel

LISTINGS = [
    {
        "title": "Turbocharged Supra",
        "make": "Toyota",
        "model": "Supra",
        "year": 1998,
        "price": 45000,
        "location": "Los Angeles, CA",
        "description": "Big single turbo build with a forged engine",
        "engine": "2JZ-GTE",
        "transmission": "manual",
        "mileage": 80000,
        "condition": "excellent",
        "view_count": 100,
        "search_boost": 1.0,
        "created_at": datetime(2024, 1, 1, 12),
        "modifications": [
            ("Precision 6266 turbo", "engine", datetime(2024, 1, 2, 12)),
            ("Coilovers", "suspension", datetime(2024, 1, 3, 12)),
        ],
        "images": [("https://img.example.com/supra-1.jpg", True), ("https://img.example.com/supra-2.jpg", False)],
    },
    {
        "title": "Clean Civic Type R",
        "make": "Honda",
        "model": "Civic",
        "year": 2018,
        "price": 32000,
        "location": "Austin, TX",
        "description": "Mostly stock with an intake",
        "transmission": "manual",
        "mileage": 30000,
        "condition": "good",
        "view_count": 50,
        "created_at": datetime(2024, 2, 1, 12),
        "modifications": [("Cold air intake", "engine", datetime(2024, 2, 2, 12))],
        "images": [("https://img.example.com/civic-1.jpg", False)],
    },
    {
        "title": "Lifted Tacoma",
        "make": "Toyota",
        "model": "Tacoma",
        "year": 2015,
        "price": 28000,
        "location": "Denver, CO",
        "description": "Off-road ready truck with a lift kit",
        "transmission": "automatic",
        "mileage": 90000,
        "condition": "fair",
        "view_count": 20,
        "created_at": datetime(2024, 3, 1, 12),
        "modifications": [
            ("Lift kit", "suspension", datetime(2024, 3, 2, 12)),
            ("Skid plates", "armor", datetime(2024, 3, 3, 12)),
        ],
        "images": [],
    },
    {
        "title": "Stock Miata",
        "make": "Mazda",
        "model": "MX-5",
        "year": 2005,
        "price": 9000,
        "location": "Portland, OR",
        "description": "Unmodified roadster",
        "transmission": "manual",
        "mileage": 120000,
        "condition": "good",
        "view_count": 5,
        "created_at": datetime(2024, 4, 1, 12),
        "modifications": [],
        "images": [],
    },
    {
        "title": "Sold WRX",
        "make": "Subaru",
        "model": "WRX",
        "year": 2012,
        "price": 15000,
        "location": "Seattle, WA",
        "description": "Turbo swap, already sold",
        "transmission": "manual",
        "mileage": 70000,
        "condition": "good",
        "status": "sold",
        "created_at": datetime(2024, 5, 1, 12),
        "modifications": [("Turbo swap", "engine", datetime(2024, 5, 2, 12))],
        "images": [],
    },
]


def seed_listings(session: Session) -> None:
    for data in LISTINGS:
        data = dict(data)
        modifications = data.pop("modifications")
        images = data.pop("images")

        listing = ListingModel(**data, modification_count=len(modifications))
        listing.modifications = [
            ModificationModel(name=name, category=category, created_at=created_at)
            for name, category, created_at in modifications
        ]
        listing.images = [ListingImageModel(image_url=url, is_primary=primary) for url, primary in images]
        session.add(listing)

    session.commit()


@fixture(scope="session")
def engine():
    engine = sa.create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    SqlAlchemyBase.metadata.create_all(bind=engine)

    with Session(engine) as session:
        seed_listings(session)

    yield engine

    engine.dispose()


@fixture(scope="session")
def session_factory(engine) -> sessionmaker:
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@fixture()
def session(session_factory) -> Generator[Session, None, None]:
    sess = session_factory()
    try:
        yield sess
    finally:
        sess.close()


@fixture(scope="session")
def api_client(session_factory) -> Generator[TestClient, None, None]:
    def override_generate_session() -> Generator[Session, None, None]:
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[generate_session] = override_generate_session

    yield TestClient(app)

    app.dependency_overrides.clear()
