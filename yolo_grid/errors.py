class ShapeError(ValueError):
    """
    Raw output tensor disagrees with the declared anchors or class count.
    """
