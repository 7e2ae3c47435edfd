"""Run the chartkeeper command line tool with `python -m chartkeeper`."""

from chartkeeper.tool.chartkeeper import main

if __name__ == "__main__":
    main()
