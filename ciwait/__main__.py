from ciwait.cli import main

main()
