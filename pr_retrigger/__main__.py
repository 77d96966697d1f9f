"""Allow ``python -m pr_retrigger``."""

from pr_retrigger.workers.retrigger_worker import cli

if __name__ == "__main__":
    cli()
