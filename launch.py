import sys
import argparse
from pathlib import Path

from colorama import init, Fore, Style

init(autoreset=True)


def print_colored(text, color=Fore.WHITE, style=Style.NORMAL):
    print(f"{style}{color}{text}{Style.RESET_ALL}")


def print_banner():
    """Print a colorful banner for the application."""
    banner = [
        "╔══════════════════════════════════════════════════════════════╗",
        "║                  PARKOUR DUELS MONITOR                       ║",
        "║                 Checkpoint Time Analyzer                     ║",
        "╚══════════════════════════════════════════════════════════════╝"
    ]

    print_colored("\n", Fore.CYAN)
    for line in banner:
        print_colored(line, Fore.CYAN, Style.BRIGHT)
    print_colored("", Fore.CYAN)


def print_menu():
    print_colored("┌──────────────────────────────────────────────────────────────┐", Fore.BLUE)
    print_colored("│                        MAIN MENU                             │", Fore.BLUE, Style.BRIGHT)
    print_colored("├──────────────────────────────────────────────────────────────┤", Fore.BLUE)
    print_colored("│  1. Live Monitor                                             │", Fore.GREEN)
    print_colored("│     Watch the Minecraft latest.log while you play            │", Fore.WHITE, Style.DIM)
    print_colored("│                                                              │", Fore.WHITE)
    print_colored("│  2. Test Mode (Simulation)                                   │", Fore.YELLOW)
    print_colored("│     Replay a sample log as if it were being written          │", Fore.WHITE, Style.DIM)
    print_colored("│                                                              │", Fore.WHITE)
    print_colored("│  3. Parse a Saved Log                                        │", Fore.MAGENTA)
    print_colored("│     Analyze a log file once                                  │", Fore.WHITE, Style.DIM)
    print_colored("│                                                              │", Fore.WHITE)
    print_colored("│  4. Exit                                                     │", Fore.RED)
    print_colored("└──────────────────────────────────────────────────────────────┘", Fore.BLUE)


def get_user_choice():
    """Get and validate user input."""
    while True:
        try:
            choice = input(f"{Fore.CYAN}Enter your choice (1-4): {Style.RESET_ALL}").strip()
            if choice in ['1', '2', '3', '4']:
                return choice
            print_colored("Invalid choice. Please enter a number from 1 to 4.", Fore.RED)
        except KeyboardInterrupt:
            print_colored("\nExiting...", Fore.YELLOW)
            sys.exit(0)


def run_parse(path):
    from parkour_monitor import live_monitor

    path = Path(path).expanduser()
    if not path.is_file():
        print_colored(f"File not found: {path}", Fore.RED)
        return
    live_monitor.parse_file(path)


def build_parser():
    parser = argparse.ArgumentParser(description="Parkour Duels checkpoint monitor")
    parser.add_argument("--log-path", help="Watch this log instead of the default Minecraft locations")
    parser.add_argument("--test", action="store_true", help="Run against the simulated log")
    parser.add_argument("--parse", metavar="FILE", help="Parse a saved log once and exit")
    parser.add_argument("--no-server", action="store_true", help="Do not start the web server")
    return parser


def main(argv=None):
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.parse:
        run_parse(args.parse)
        return
    if args.log_path or args.test:
        from parkour_monitor import live_monitor
        live_monitor.main(test_mode=args.test, log_path=args.log_path, serve=not args.no_server)
        return

    print_banner()
    print_menu()
    choice = get_user_choice()

    if choice == '1':
        print_colored("Starting Live Monitor...", Fore.GREEN, Style.BRIGHT)
        from parkour_monitor import live_monitor
        live_monitor.main(test_mode=False, serve=not args.no_server)

    elif choice == '2':
        print_colored("Starting Live Monitor (Test Mode)...", Fore.YELLOW, Style.BRIGHT)
        from parkour_monitor import live_monitor
        live_monitor.main(test_mode=True, serve=not args.no_server)

    elif choice == '3':
        path = input(f"{Fore.CYAN}Path to log file: {Style.RESET_ALL}").strip().strip('"')
        run_parse(path)

    elif choice == '4':
        print_colored("Thank you for using Parkour Duels Monitor!", Fore.GREEN, Style.BRIGHT)


if __name__ == "__main__":
    main()
