from snapaudit.cli import main

main()
