"""Ghost Tips - 결과 화면에 붙는 짧은 안내 문구 (로컬 목록)"""
import random
from typing import Callable, Optional

LOCAL_TIPS = (
    "Chairs with lumbar support trend high for comfort 👻",
    "Most people split budget 40% desk, 30% chair, 30% rest",
    "Try switching to Casual to fit tight budgets",
    "Turn off Amazon-only to see more stores",
    "Standing desks boost productivity by 15% on average 👻",
    "Monitor arm saves desk space and improves ergonomics",
    "Cable management prevents the dreaded spaghetti setup 👻",
    "LED desk lamps reduce eye strain during long sessions",
)

NO_RESULTS_TIPS = (
    "👻 No products found within budget - try increasing your budget",
    "Consider turning off Amazon-only to see more options",
    "Try a broader search term for better results",
)

REROLL_TIPS = (
    "Fresh setup generated! 👻",
    "New products, same great style!",
    "Rerolled with your preferences in mind!",
)


def random_tips(count: int = 2, rng: Optional[random.Random] = None) -> list[str]:
    """LOCAL_TIPS 중 count개 무작위 선택"""
    chooser: Callable = (rng or random).sample
    return chooser(list(LOCAL_TIPS), k=min(count, len(LOCAL_TIPS)))


def tips_for_result(found: int, requested: int, rng: Optional[random.Random] = None) -> list[str]:
    """결과 개수에 맞는 팁 목록"""
    if found == 0:
        return list(NO_RESULTS_TIPS)
    if found < requested:
        return [
            f"👻 Found {found} of {requested} items within budget",
            "Consider increasing budget for complete setup",
            "All selected items offer great value for money",
        ]
    return random_tips(2, rng)
