"""Seed script to populate the database with sample data."""

from datetime import date, timedelta

from app.core.database import Base, SessionLocal, engine
from app.models.billing import MainMeterBilling  # noqa: F401
from app.models.enums import Energy
from app.models.main_meter import MainMeter
from app.models.sub_meter import SubMeter
from app.models.sub_meter_reading import SubMeterReading
from app.models.user import User
from app.services.auth import get_password_hash

SEED_PASSWORD = "password123"


def seed_database() -> None:
    """Seed the database with sample data."""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        # Check if data already exists
        if db.query(User).first():
            print("Database already has data. Skipping seed.")
            return

        print("Seeding database...")

        landlord = User(
            username="landlord",
            email="landlord@example.com",
            hashed_password=get_password_hash(SEED_PASSWORD),
        )
        tenants = [
            User(
                username=f"tenant{number}",
                email=f"tenant{number}@example.com",
                hashed_password=get_password_hash(SEED_PASSWORD),
            )
            for number in (1, 2)
        ]
        db.add_all([landlord, *tenants])
        db.flush()

        main_meter = MainMeter(
            meter_id="EL-0001",
            energy=Energy.ELECTRICITY,
            address="123 Main Street, Stockholm",
            user_id=landlord.id,
        )
        db.add(main_meter)
        db.flush()
        print(f"Created main meter {main_meter.meter_id} (ID: {main_meter.id})")

        sub_meters = [
            SubMeter(
                subid=subid,
                meter_id=f"EL-0001-{subid}",
                main_meter_id=main_meter.id,
                user_id=tenant.id,
            )
            for subid, tenant in enumerate(tenants, start=1)
        ]
        db.add_all(sub_meters)
        db.flush()

        # Monthly readings over a year, the second tenant using a bit more
        start = date(2025, 12, 31)
        for sub_meter, daily_use in zip(sub_meters, (4.0, 5.5), strict=True):
            for month in range(13):
                reading_date = start + timedelta(days=30 * month)
                db.add(
                    SubMeterReading(
                        sub_meter_id=sub_meter.id,
                        reading_value=round(daily_use * 30 * month, 1),
                        reading_date=reading_date,
                    )
                )

        db.commit()
        print(f"Created {len(sub_meters)} sub meters with readings")
        print(f"Log in as 'landlord' with password '{SEED_PASSWORD}'")
    finally:
        db.close()


if __name__ == "__main__":
    seed_database()
