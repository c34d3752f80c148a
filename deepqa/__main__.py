#!/usr/bin/env python3
"""
DeepQA - Main Entry Point

Usage:
    python3 -m deepqa ask "Your question here"
    python3 -m deepqa batch questions.tsv
    python3 -m deepqa --help
"""

from deepqa.cli import app


def main():
    """Main entry point"""
    app()


if __name__ == "__main__":
    main()
