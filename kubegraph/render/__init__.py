from kubegraph.render.dot import render_dot
from kubegraph.render.tree import render_tree

__all__ = ["render_dot", "render_tree"]
