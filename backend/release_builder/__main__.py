from release_builder.cli import main

main()
