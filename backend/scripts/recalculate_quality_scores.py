"""
Re-score stored articles with the current quality thresholds and refresh
their risk level.

Usage:
    python backend/scripts/recalculate_quality_scores.py --batch-size 200
    python backend/scripts/recalculate_quality_scores.py --status draft --status in_review
"""

import argparse
import asyncio

from sqlalchemy import select

from content_engine.core.database import async_session, close_db
from content_engine.models import Article, ArticleStatus
from content_engine.services.quality_score_service import apply_scores, article_meta, quality_score_service
from content_engine.services.risk_assessment_service import risk_assessment_service
from content_engine.services.settings_service import settings_service


async def run(batch_size: int = 200, statuses: list[str] | None = None) -> None:
    thresholds = await settings_service.quality_thresholds()
    wanted = [ArticleStatus(s) for s in statuses] if statuses else None
    last_id = 0
    total = 0
    changed = 0
    while True:
        async with async_session() as db:
            query = select(Article).where(Article.id > last_id).order_by(Article.id.asc()).limit(batch_size)
            if wanted:
                query = query.where(Article.status.in_(wanted))
            rows = (await db.execute(query)).scalars().all()
            if not rows:
                break
            for article in rows:
                before = article.quality_score
                quality = quality_score_service.score(article.content or "", article_meta(article), thresholds)
                apply_scores(article, quality, risk_assessment_service.assess(article.content or "", quality))
                changed += int(before != article.quality_score)
                total += 1
            await db.commit()
            last_id = rows[-1].id
            print(f"Scored batch last_id={last_id} size={len(rows)} total={total}")
    await close_db()
    print(f"Done. Re-scored {total} articles, {changed} score changes.")


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument("--batch-size", type=int, default=200)
    parser.add_argument("--status", action="append", choices=[s.value for s in ArticleStatus])
    args = parser.parse_args()
    asyncio.run(run(batch_size=max(1, args.batch_size), statuses=args.status))


if __name__ == "__main__":
    main()
