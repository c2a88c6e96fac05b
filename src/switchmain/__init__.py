"""Git working copy upkeep tool.

Features:
- Fetch from the single remote with pruning, using credentials from the git credential helper
- Check out the main branch and fast-forward it to its upstream
- Report local branches that track nothing or whose upstream is gone
- Interactive deletion of branches whose upstream is gone
- Branch protection patterns
"""

__version__ = "0.1.0"
