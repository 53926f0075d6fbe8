"""Allow ``python -m mineru_mcp``."""

from mineru_mcp.cli import main

if __name__ == "__main__":
    main()
