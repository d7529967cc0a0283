"""
Styles and colors for the relay GUI.
"""

# Team colors for the message log
TEAM_COLORS = {
    "Red": "#E74C3C",
    "Blue": "#3498DB",
    "Server": "#F1C40F",
}
DEFAULT_TEAM_COLOR = "#ECF0F1"
NOTICE_COLOR = "#95A5A6"
ERROR_COLOR = "#E74C3C"

# Teams offered on the menu
MENU_TEAMS = ["Red", "Blue"]

MAIN_STYLESHEET = """
QMainWindow, QWidget#centralWidget {
    background-color: #2C3E50;
}

QLabel {
    color: white;
}

QLabel#titleLabel {
    font-size: 28px;
    font-weight: bold;
}

QPushButton {
    background-color: #34495E;
    color: white;
    border: 1px solid #5D6D7E;
    border-radius: 4px;
    padding: 8px 16px;
}

QPushButton:hover {
    background-color: #415B76;
}

QLineEdit {
    background-color: #ECF0F1;
    border-radius: 4px;
    padding: 6px;
}

QTextEdit {
    background-color: #1A252F;
    color: #ECF0F1;
    border: 1px solid #34495E;
    border-radius: 4px;
}
"""
