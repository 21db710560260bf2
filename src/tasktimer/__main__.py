from tasktimer.cli import main

main()
