from gdscript_formatter.cli.app import main

main()
