from .notebook_service import (
    create_notebook,
    locked_create_cell,
    locked_update_cell,
    locked_delete_cell,
    clear_notebook,
    split_input,
    evaluate_cell,
    stop_cell,
    stop_notebook,
    evaluate_notebook,
    notebook_to_contents,
    validate_notebook_contents,
    load_notebook_contents,
    reload_notebook,
    should_autoeval,
    autoeval_notebook,
    render_notebook_html
)

__all__ = [
    "create_notebook",
    "locked_create_cell",
    "locked_update_cell",
    "locked_delete_cell",
    "clear_notebook",
    "split_input",
    "evaluate_cell",
    "stop_cell",
    "stop_notebook",
    "evaluate_notebook",
    "notebook_to_contents",
    "validate_notebook_contents",
    "load_notebook_contents",
    "reload_notebook",
    "should_autoeval",
    "autoeval_notebook",
    "render_notebook_html"
]
