# kube_balance/run_rebalancer.py
"""Run the rebalancer controller."""

import logging
import sys

from kube_balance.config import RebalancerSettings


def main():
    """Main entry point."""
    settings = RebalancerSettings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    logger = logging.getLogger(__name__)
    logger.info("Starting kube-balance rebalancer")

    try:
        from kube_balance.container import worker
        worker.start()
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
