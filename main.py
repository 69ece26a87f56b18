from __future__ import annotations

from market_seeder.runner import main


if __name__ == "__main__":
    main()
