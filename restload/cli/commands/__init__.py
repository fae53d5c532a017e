"""Click subcommands."""
