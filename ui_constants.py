SETTINGS_MODS_DIR = "mods_dir"
SETTINGS_SEARCH_MODE = "search_mode"

SEARCH_MODES = ("output", "ingredient")
RECIPES_PAGE_SIZE = 100
LOG_FILENAME = "recipe_extractor.log"

DARK_STYLESHEET = """
QWidget {
    background-color: #1e1f22;
    color: #f0f0f0;
    font-size: 12px;
}
QToolTip {
    background-color: #2b2d31;
    color: #ffffff;
    border: 1px solid #3a3c40;
}
QLineEdit, QPlainTextEdit, QComboBox {
    background-color: #2b2d31;
    color: #f0f0f0;
    border: 1px solid #3a3c40;
    border-radius: 4px;
    padding: 4px;
}
QLineEdit:focus, QPlainTextEdit:focus, QComboBox:focus {
    border: 1px solid #4f8cff;
}
QPushButton {
    background-color: #2f3136;
    color: #f0f0f0;
    border: 1px solid #3a3c40;
    border-radius: 4px;
    padding: 6px 10px;
}
QPushButton:hover {
    background-color: #3a3c40;
}
QPushButton:disabled {
    color: #7a7d83;
}
QProgressBar {
    background-color: #2b2d31;
    border: 1px solid #3a3c40;
    border-radius: 4px;
    text-align: center;
}
QProgressBar::chunk {
    background-color: #4f8cff;
}
QTabWidget::pane {
    border: 1px solid #3a3c40;
}
QTabBar::tab {
    background-color: #2b2d31;
    padding: 6px 12px;
    border: 1px solid #3a3c40;
    border-bottom: none;
}
QTabBar::tab:selected {
    background-color: #1e1f22;
}
QTableWidget {
    background-color: #1f2124;
    alternate-background-color: #26282c;
    gridline-color: #3a3c40;
    border: 1px solid #3a3c40;
}
QHeaderView::section {
    background-color: #2b2d31;
    border: 1px solid #3a3c40;
    padding: 4px;
}
QStatusBar {
    color: #bfc3c9;
}
"""
