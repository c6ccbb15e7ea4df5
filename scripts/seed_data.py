"""
Data Seeder for Shovel Project Tracker.
Populates the configured store with realistic data for testing and demo purposes.
"""

import asyncio
import sys
import random
from datetime import date, timedelta
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shovel_tracker.domain.models import Collection
from shovel_tracker.infra.config import get_settings
from shovel_tracker.infra.store import create_store
from shovel_tracker.services.tracker_service import TrackerService

PROJECTS = [
    ("PRJ001", "Main Street Excavation"),
    ("PRJ002", "Riverside Drainage"),
    ("PRJ003", "School Yard Landscaping"),
]
TEAM_MEMBERS = ["Alex Meyer", "Sam Berger", "Kim Novak"]
DESCRIPTIONS = ["Trenching", "Site survey", "Material pickup", "Backfill", "", "Machine transport"]


async def seed(days: int = 30):
    settings = get_settings()
    store = create_store(settings)
    tracker = TrackerService(store)

    # Start from empty collections
    for collection in Collection:
        await store.set(collection, [])
    await tracker.load()

    print("Starting data seeding...")
    projects = []
    for code, name in PROJECTS:
        result = await tracker.add_project(code, name)
        print(f"Creating project: {code} - {name}")
        projects.append(result.item)

    members = []
    for name in TEAM_MEMBERS:
        result = await tracker.add_team_member(name)
        print(f"Creating team member: {name}")
        members.append(result.item)

    # Weekdays only, one or two entries per member and day
    count = 0
    day = date.today() - timedelta(days=days)
    while day <= date.today():
        if day.weekday() < 5:
            for member in members:
                for _ in range(random.randint(1, 2)):
                    result = await tracker.add_time_entry(
                        random.choice(projects).id,
                        member.id,
                        day,
                        hours=random.choice([2, 3.5, 4, 6, 8]),
                        kilometers=random.choice([0, 0, 12.5, 35, 80]),
                        description=random.choice(DESCRIPTIONS),
                    )
                    if not result.saved:
                        print(f"ERROR: {', '.join(result.errors)}")
                        sys.exit(1)
                    count += 1
        day += timedelta(days=1)

    await store.close()
    print(f"Seeding complete: {len(projects)} projects, {len(members)} team members, {count} time entries.")


if __name__ == "__main__":
    asyncio.run(seed())
