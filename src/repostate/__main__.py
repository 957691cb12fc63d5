from repostate.cli import main

main()
