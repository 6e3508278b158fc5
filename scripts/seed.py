"""Seed a development database with categories, articles, comments, quotes and heroes.

Images are not uploaded; seeded rows point at placeholder URLs so the
database can be filled without media-service credentials.  Identifiers go
through the same sequence and slug services the API uses, so numbering
carries on correctly once real content is created.
"""
import argparse
import asyncio
import logging
import random
import time

from sqlalchemy import text

from cms_api.database import Base, create_all, engine, session_scope
from cms_api.logging_config import setup_logging
from cms_api.models import Article, Category, Comment, Hero, Quote
from cms_api.services.hero_service import HERO_PARTITION
from cms_api.services.quote_service import QUOTE_PARTITION
from cms_api.services.sequence import SEED_LATEST, next_sequence_id
from cms_api.services.slugs import derive_slug, slugify

logger = logging.getLogger("cms_api.seed")

CATEGORIES = ["Technology", "Travel", "Food", "Science", "Culture", "Sport"]
TOPICS = ["cities", "coffee", "rivers", "robots", "markets", "music", "trains", "gardens"]
QUOTES = [
    ("Simplicity is prerequisite for reliability.", "Edsger Dijkstra"),
    ("The best way to predict the future is to invent it.", "Alan Kay"),
    ("Not all those who wander are lost.", "J. R. R. Tolkien"),
    ("Whatever you do, do it well.", "Walt Disney"),
]
PLACEHOLDER = "https://placehold.co/1600x900?text={}"


async def seed(articles_per_category: int, reset: bool) -> None:
    start = time.perf_counter()

    if reset:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)
    await create_all()

    async with session_scope() as session:
        categories = []
        for name in CATEGORIES:
            category = Category(name=name, slug=slugify(name))
            session.add(category)
            categories.append(category)
        await session.flush()
        logger.info("Created %d categories", len(categories))

        total_comments = 0
        for category in categories:
            for i in range(articles_per_category):
                topic = random.choice(TOPICS)
                sequence_id = await next_sequence_id(session, category.slug, Article.sequence_id)
                title = f"{category.name} notes {i + 1}: a week of {topic}"
                article = Article(
                    title=title,
                    description=f"Field notes about {topic} from the {category.name.lower()} desk. " * 3,
                    slug=derive_slug(title, sequence_id),
                    sequence_id=sequence_id,
                    image_url=PLACEHOLDER.format(sequence_id),
                    author=random.choice(["", "Editorial", "Guest"]),
                    view_count=random.randint(0, 500),
                    category_id=category.id,
                )
                session.add(article)
                await session.flush()

                for _ in range(random.randint(0, 4)):
                    session.add(Comment(article_id=article.id, text=f"Enjoyed the bit about {topic}."))
                    total_comments += 1
            await session.flush()
            logger.info("Seeded %d articles in %s", articles_per_category, category.slug)

        for content, author in QUOTES:
            session.add(Quote(
                content=content,
                author=author,
                sequence_id=await next_sequence_id(
                    session, QUOTE_PARTITION, Quote.sequence_id,
                    seed=SEED_LATEST, created_at_column=Quote.created_at,
                ),
            ))
            await session.flush()

        for title in ("Welcome", "Latest stories"):
            sequence_id = await next_sequence_id(session, HERO_PARTITION, Hero.sequence_id)
            session.add(Hero(
                title=title,
                sequence_id=sequence_id,
                image_url=PLACEHOLDER.format(sequence_id),
                image_public_id=f"heroes/{sequence_id}",
            ))
        await session.flush()

        articles = (await session.execute(text("SELECT COUNT(*) FROM articles"))).scalar_one()

    await engine.dispose()

    elapsed = time.perf_counter() - start
    logger.info(
        "Seeding complete in %.1fs: %d articles, %d comments, %d quotes",
        elapsed, articles, total_comments, len(QUOTES),
    )


def main():
    parser = argparse.ArgumentParser(description="Seed the CMS database")
    parser.add_argument("--per-category", type=int, default=5, help="Articles per category (default 5)")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()
    setup_logging()
    asyncio.run(seed(args.per_category, args.reset))


if __name__ == "__main__":
    main()
