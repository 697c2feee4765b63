import os
from dotenv import load_dotenv

load_dotenv()

database_url = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./daily_loot.sqlite3")
pepper_data = os.getenv("PEPPER_DATA", "")
redis_url = os.getenv("REDIS_URL", "")
claim_channel = os.getenv("CLAIM_CHANNEL", "daily_claim")
claim_cooldown_seconds = int(os.getenv("CLAIM_COOLDOWN_SECONDS", "86400"))
legendary_box_item_id = int(os.getenv("LEGENDARY_BOX_ITEM_ID", "1"))
game_authority_name = os.getenv("GAME_AUTHORITY_NAME", "daily_loot")
distribution_report_hours = int(os.getenv("DISTRIBUTION_REPORT_HOURS", "24"))

if __name__ == "__main__":
    print(database_url, redis_url, claim_channel, claim_cooldown_seconds, game_authority_name)
