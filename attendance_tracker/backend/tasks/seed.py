import logging

from ..db.redis_client import COLLECTION_TYPES, RedisClient
from ..models.store_models import ATTENDANCE_KEY, BATCHES_KEY, STUDENTS_KEY, TRAININGS_KEY, Student

logger = logging.getLogger(__name__)

DEMO_BATCHES = ["BCA-Sem3", "Python-BatchA", "MCA-Sem1"]

DEMO_STUDENTS = [
    Student(id="1", name="John Doe", batch="BCA-Sem3", course="BCA", contact="john@example.com"),
    Student(id="2", name="Jane Smith", batch="BCA-Sem3", course="BCA", contact="jane@example.com"),
    Student(id="3", name="Mike Johnson", batch="Python-BatchA", course="Python", contact="mike@example.com"),
    Student(id="4", name="Sarah Williams", batch="Python-BatchA", course="Python", contact="sarah@example.com"),
    Student(id="5", name="Tom Brown", batch="MCA-Sem1", course="MCA", contact="tom@example.com"),
    Student(id="6", name="Emily Davis", batch="MCA-Sem1", course="MCA", contact="emily@example.com"),
]


async def seed_demo_data(redis_client: RedisClient) -> list:
    """
    Fills every missing collection with its demo value; existing keys are never
    touched. Returns the keys that were written.
    """
    defaults = {
        BATCHES_KEY: DEMO_BATCHES,
        STUDENTS_KEY: DEMO_STUDENTS,
        ATTENDANCE_KEY: [],
        TRAININGS_KEY: [],
    }
    seeded = []
    for key, value in defaults.items():
        if await redis_client.exists(key):
            continue
        await redis_client.write(key, value, COLLECTION_TYPES[key])
        seeded.append(key)

    if seeded:
        logger.info(f"Seeded demo data for: {', '.join(seeded)}.")
    else:
        logger.info("Store already initialised, skipping demo data.")
    return seeded
