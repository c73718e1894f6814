"""
Color utilities for dnsdog terminal output
"""


class Colors:
    """ANSI color codes for terminal output"""
    RED = '\033[91m'
    GREEN = '\033[92m'
    YELLOW = '\033[93m'
    BLUE = '\033[94m'
    CYAN = '\033[96m'
    RESET = '\033[0m'
    BOLD = '\033[1m'


def colorize(text: str, color: str) -> str:
    """Colorize text for terminal output"""
    return f"{color}{text}{Colors.RESET}"


def print_header(title: str) -> None:
    """Print a formatted header"""
    print(f"\n{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.RESET}")
    print(f"{Colors.BOLD}{Colors.CYAN}{title.center(60)}{Colors.RESET}")
    print(f"{Colors.BOLD}{Colors.CYAN}{'='*60}{Colors.RESET}\n")


def print_info(message: str) -> None:
    print(f"{Colors.BLUE}[INFO]{Colors.RESET} {message}")


def print_error(message: str) -> None:
    print(f"{Colors.RED}[ERROR]{Colors.RESET} {message}")
