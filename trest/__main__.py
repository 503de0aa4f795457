from trest.cli import main

main()
