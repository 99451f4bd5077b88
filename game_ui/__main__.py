from game_ui.play import main

main()
